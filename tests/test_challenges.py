"""Tests for the silhouette challenge registry."""

import pytest

from pokepacks.models.failure import FailureKind, InvalidChallengeError
from pokepacks.services.challenges import ChallengeRegistry


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry(clock: FakeClock) -> ChallengeRegistry:
    return ChallengeRegistry(ttl_seconds=600, clock=clock)


class TestChallengeRegistry:
    def test_create_and_resolve(self, registry: ChallengeRegistry) -> None:
        token = registry.create("Pikachu", "https://img/pikachu.png")

        challenge = registry.resolve(token)

        assert challenge.answer == "pikachu"
        assert challenge.image_url == "https://img/pikachu.png"

    def test_tokens_are_unique_and_opaque(self, registry: ChallengeRegistry) -> None:
        tokens = {registry.create("pikachu", "img") for _ in range(50)}

        assert len(tokens) == 50
        assert all("pikachu" not in token for token in tokens)

    def test_consume_is_single_use(self, registry: ChallengeRegistry) -> None:
        """The second consume of a token fails."""
        token = registry.create("pikachu", "img")

        registry.consume(token)

        with pytest.raises(InvalidChallengeError) as exc_info:
            registry.consume(token)
        assert exc_info.value.kind is FailureKind.INVALID_CHALLENGE
        assert exc_info.value.status_code == 404

    def test_unknown_token(self, registry: ChallengeRegistry) -> None:
        with pytest.raises(InvalidChallengeError):
            registry.resolve("nope")

    def test_expired_token_rejected(self, registry: ChallengeRegistry, clock: FakeClock) -> None:
        token = registry.create("pikachu", "img")

        clock.now += 600

        with pytest.raises(InvalidChallengeError):
            registry.consume(token)

    def test_token_valid_just_before_expiry(
        self, registry: ChallengeRegistry, clock: FakeClock
    ) -> None:
        token = registry.create("pikachu", "img")

        clock.now += 599.9

        assert registry.consume(token).answer == "pikachu"

    def test_resolve_drops_expired(self, registry: ChallengeRegistry, clock: FakeClock) -> None:
        token = registry.create("pikachu", "img")
        clock.now += 601

        with pytest.raises(InvalidChallengeError):
            registry.resolve(token)
        assert len(registry) == 0

    def test_purge_expired(self, registry: ChallengeRegistry, clock: FakeClock) -> None:
        registry.create("old", "img")
        clock.now += 700
        registry.create("new", "img")

        assert registry.purge_expired() == 0  # create() already purged
        assert len(registry) == 1

    def test_invalidate(self, registry: ChallengeRegistry) -> None:
        token = registry.create("pikachu", "img")

        registry.invalidate(token)
        registry.invalidate(token)

        assert len(registry) == 0
