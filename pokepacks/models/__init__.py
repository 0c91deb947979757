from pokepacks.models.card import Card
from pokepacks.models.failure import (
    AdminNotConfiguredError,
    FailureDetail,
    FailureKind,
    InsufficientFundsError,
    InternalError,
    InvalidAmountError,
    InvalidChallengeError,
    InvalidRequestError,
    KnownError,
    NotFoundError,
    UnauthorizedError,
    UpstreamUnavailableError,
)
from pokepacks.models.pools import Bucket, RarityPools, classify_rarity, partition_by_rarity

__all__ = [
    "AdminNotConfiguredError",
    "Bucket",
    "Card",
    "FailureDetail",
    "FailureKind",
    "InsufficientFundsError",
    "InternalError",
    "InvalidAmountError",
    "InvalidChallengeError",
    "InvalidRequestError",
    "KnownError",
    "NotFoundError",
    "RarityPools",
    "UnauthorizedError",
    "UpstreamUnavailableError",
    "classify_rarity",
    "partition_by_rarity",
]
