"""Tests for rarity classification and pool partitioning."""

import pytest

from conftest import make_cards
from pokepacks.models.pools import Bucket, RarityPools, classify_rarity, partition_by_rarity


class TestClassifyRarity:
    @pytest.mark.parametrize(
        ("rarity", "bucket"),
        [
            ("Common", Bucket.COMMON),
            ("Uncommon", Bucket.UNCOMMON),
            ("Rare", Bucket.RARE_OR_HIGHER),
            ("Rare Holo", Bucket.RARE_OR_HIGHER),
            ("Rare Holo EX", Bucket.RARE_OR_HIGHER),
            ("Rare Ultra", Bucket.RARE_OR_HIGHER),
            ("Rare Secret", Bucket.RARE_OR_HIGHER),
            ("Amazing Rare", Bucket.RARE_OR_HIGHER),
            ("Promo", Bucket.RARE_OR_HIGHER),
            ("Rare Holo VSTAR", Bucket.RARE_OR_HIGHER),
        ],
    )
    def test_known_labels(self, rarity: str, bucket: Bucket) -> None:
        """Catalog labels map to their bucket."""
        assert classify_rarity(rarity) is bucket

    @pytest.mark.parametrize("rarity", [None, "", "Unknown", "Trainer", "Illustration"])
    def test_unclassified_labels_fall_back_to_uncommon(self, rarity: str | None) -> None:
        """Missing and unrecognized labels are Uncommon."""
        assert classify_rarity(rarity) is Bucket.UNCOMMON

    def test_matching_is_case_sensitive(self) -> None:
        """Lowercase "common" is not the Common label."""
        assert classify_rarity("common") is Bucket.UNCOMMON


class TestPartitionByRarity:
    def test_every_card_lands_in_exactly_one_bucket(self) -> None:
        """Partition preserves the card count."""
        cards = (
            make_cards("sv1", "Common", 4)
            + make_cards("sv1", "Uncommon", 3)
            + make_cards("sv1", "Rare Holo", 2)
            + make_cards("sv1", None, 2)
            + make_cards("sv1", "Promo", 1)
        )

        pools = partition_by_rarity(cards)

        assert pools.total() == len(cards)
        assert pools.counts() == {"Common": 4, "Uncommon": 5, "RareOrHigher": 3}

    def test_empty_input(self) -> None:
        """No cards yields empty pools."""
        pools = partition_by_rarity([])

        assert pools.total() == 0
        assert pools.union() == []

    def test_union_lists_commons_first(self) -> None:
        """union() concatenates common, uncommon, then rare."""
        common = make_cards("sv1", "Common", 1)
        rare = make_cards("sv1", "Rare", 1)
        pools = RarityPools(common=common, rare_or_higher=rare)

        assert pools.union() == common + rare
