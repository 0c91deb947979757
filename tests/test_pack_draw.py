"""Tests for the pack draw engine."""

import random

from conftest import make_cards, make_pools
from pokepacks.models.pools import Bucket, RarityPools, classify_rarity
from pokepacks.services.pack_draw import (
    DEFAULT_PACK_TEMPLATE,
    DrawStep,
    draw,
    pack_target,
    pick_n,
)


class TestPackTemplate:
    def test_default_pack_has_ten_cards(self) -> None:
        assert pack_target(DEFAULT_PACK_TEMPLATE) == 10


class TestPickN:
    def test_no_repeats_within_a_pick(self) -> None:
        """Sampling is without replacement."""
        cards = make_cards("sv1", "Common", 10)

        picked = pick_n(cards, 6, random.Random(1))

        assert len(picked) == 6
        assert len({c.id for c in picked}) == 6

    def test_short_bucket_returns_what_it_has(self) -> None:
        cards = make_cards("sv1", "Common", 2)

        assert len(pick_n(cards, 5, random.Random(1))) == 2

    def test_zero_or_empty(self) -> None:
        assert pick_n([], 3, random.Random(1)) == []
        assert pick_n(make_cards("sv1", "Common", 3), 0, random.Random(1)) == []


class TestDraw:
    def test_full_pools_give_standard_pack(self) -> None:
        """1 rare, 3 uncommons, 6 commons from well-stocked pools."""
        pack = draw(make_pools(), rng=random.Random(3))

        buckets = [classify_rarity(card.rarity) for card in pack]
        assert len(pack) == 10
        assert buckets.count(Bucket.RARE_OR_HIGHER) == 1
        assert buckets.count(Bucket.UNCOMMON) == 3
        assert buckets.count(Bucket.COMMON) == 6
        assert classify_rarity(pack[0].rarity) is Bucket.RARE_OR_HIGHER

    def test_size_is_min_of_target_and_pool(self) -> None:
        """Pack size is min(10, total cards) for any pool shape."""
        rng = random.Random(42)
        for common in range(0, 8):
            for uncommon in range(0, 4):
                for rare in range(0, 3):
                    pools = make_pools(common=common, uncommon=uncommon, rare=rare)
                    pack = draw(pools, rng=rng)
                    assert len(pack) == min(10, pools.total())

    def test_no_rares_substitutes_uncommon(self) -> None:
        """The rare slot falls back along its chain."""
        pools = make_pools(common=10, uncommon=5, rare=0)

        pack = draw(pools, rng=random.Random(5))

        assert len(pack) == 10
        assert all(classify_rarity(c.rarity) is not Bucket.RARE_OR_HIGHER for c in pack)

    def test_empty_pools_give_empty_pack(self) -> None:
        """Empty pools are not an error."""
        assert draw(RarityPools(), rng=random.Random(1)) == []

    def test_same_seed_same_pack(self) -> None:
        """Draws are reproducible with a seeded random source."""
        pools = make_pools()

        first = draw(pools, rng=random.Random(99))
        second = draw(pools, rng=random.Random(99))

        assert [c.id for c in first] == [c.id for c in second]

    def test_custom_template(self) -> None:
        """Templates other than the default are honoured."""
        template = (DrawStep((Bucket.RARE_OR_HIGHER,), 2),)
        pack = draw(make_pools(rare=5), template=template, rng=random.Random(1))

        assert len(pack) == 2
        assert all(classify_rarity(c.rarity) is Bucket.RARE_OR_HIGHER for c in pack)

    def test_scarce_pool_has_no_repeats(self) -> None:
        """Fallback chains revisiting a bucket do not repeat cards."""
        pools = make_pools(common=4, uncommon=0, rare=0)

        pack = draw(pools, rng=random.Random(8))

        assert len(pack) == 4
        assert len({c.id for c in pack}) == 4
