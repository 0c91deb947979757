"""
Silhouette challenge registry.

Short-lived, single-use tokens mapping to a hidden answer. Expiry is checked
lazily on every lookup, so no timers run in the background.

INVARIANT: consume() hands a challenge to at most one caller. The lookup and
removal happen without an await in between, so interleaved requests on the
event loop cannot both see the token.
"""

import logging
import secrets
import time
from collections.abc import Callable
from dataclasses import dataclass

from pokepacks.models.failure import InvalidChallengeError

logger = logging.getLogger(__name__)

DEFAULT_CHALLENGE_TTL_SECONDS = 10 * 60

# 16 random bytes, well beyond two 26-bit segments
_TOKEN_BYTES = 16


@dataclass(frozen=True)
class SilhouetteChallenge:
    """Hidden answer behind a challenge token."""

    answer: str
    image_url: str
    created_at: float


class ChallengeRegistry:
    """In-memory store of open challenges, one instance per application."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_CHALLENGE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._challenges: dict[str, SilhouetteChallenge] = {}

    def __len__(self) -> int:
        return len(self._challenges)

    def _expired(self, challenge: SilhouetteChallenge) -> bool:
        return self.clock() - challenge.created_at >= self.ttl_seconds

    def create(self, answer: str, image_url: str) -> str:
        """Register a challenge and return its opaque token."""
        self.purge_expired()
        token = secrets.token_urlsafe(_TOKEN_BYTES)
        self._challenges[token] = SilhouetteChallenge(
            answer=answer.lower(),
            image_url=image_url,
            created_at=self.clock(),
        )
        return token

    def resolve(self, token: str) -> SilhouetteChallenge:
        """
        Look up a challenge without consuming it.

        Raises:
            InvalidChallengeError: If the token is unknown or expired
        """
        challenge = self._challenges.get(token)
        if challenge is None:
            raise InvalidChallengeError(token)
        if self._expired(challenge):
            self._challenges.pop(token, None)
            raise InvalidChallengeError(token)
        return challenge

    def consume(self, token: str) -> SilhouetteChallenge:
        """
        Remove and return a challenge; a second call for the token fails.

        Raises:
            InvalidChallengeError: If the token is unknown, expired, or used
        """
        challenge = self._challenges.pop(token, None)
        if challenge is None or self._expired(challenge):
            raise InvalidChallengeError(token)
        return challenge

    def invalidate(self, token: str) -> None:
        """Drop a challenge if present."""
        self._challenges.pop(token, None)

    def purge_expired(self) -> int:
        """Drop every expired challenge; returns how many were removed."""
        expired = [token for token, c in self._challenges.items() if self._expired(c)]
        for token in expired:
            del self._challenges[token]
        if expired:
            logger.debug("Purged %d expired challenges", len(expired))
        return len(expired)
