"""
Failure classification for API responses.

Every user-visible failure is raised as a KnownError subclass carrying a
FailureKind, a short message, and the HTTP status it maps to. The
application exception handlers in main.py turn these into JSON bodies of
the form {"error": ..., "kind": ..., "detail": ...}.

INVARIANT: No stack trace or raw exception text reaches the client.
"""

from enum import Enum

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Classification of failure types."""

    # Input validation failures
    INVALID_INPUT = "invalid_input"
    INVALID_AMOUNT = "invalid_amount"

    # Economy constraints
    INSUFFICIENT_FUNDS = "insufficient_funds"

    # Resource failures
    NOT_FOUND = "not_found"
    INVALID_CHALLENGE = "invalid_challenge"

    # Access control
    UNAUTHORIZED = "unauthorized"
    MISCONFIGURED = "misconfigured"

    # Service failures
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"

    # Internal errors
    INTERNAL_ERROR = "internal_error"


class FailureDetail(BaseModel):
    """Error body returned to clients."""

    error: str = Field(
        ...,
        description="Short user-appropriate explanation of what went wrong",
    )
    kind: FailureKind = Field(
        ...,
        description="Machine-parseable classification of the failure",
    )
    detail: str | None = Field(
        default=None,
        description="Additional technical detail (optional)",
    )
    suggestion: str | None = Field(
        default=None,
        description="Suggested action for the user",
    )


# Fixed message for failures the system cannot explain
INTERNAL_ERROR_MESSAGE = "Server error"


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the system knows exactly what went wrong.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
        status_code: int = 400,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.suggestion = suggestion
        self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> FailureDetail:
        """Convert to an error body."""
        return FailureDetail(
            error=self.message,
            kind=self.kind,
            detail=self.detail,
            suggestion=self.suggestion,
        )


class InvalidRequestError(KnownError):
    """Malformed or missing request fields."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(
            kind=FailureKind.INVALID_INPUT,
            message=message,
            detail=detail,
            status_code=400,
        )


class InvalidAmountError(KnownError):
    """Raised when an absolute balance is not a non-negative integer."""

    def __init__(self, amount: object):
        self.amount = amount
        super().__init__(
            kind=FailureKind.INVALID_AMOUNT,
            message="amount must be a non-negative integer",
            detail=f"Received: {amount!r}",
            status_code=400,
        )


class InsufficientFundsError(KnownError):
    """
    Raised when a paid action costs more than the user's balance.

    Raised before any mutation, so the balance is untouched.
    """

    def __init__(self, balance: int, cost: int):
        self.balance = balance
        self.cost = cost
        super().__init__(
            kind=FailureKind.INSUFFICIENT_FUNDS,
            message="Not enough PokéCoins",
            detail=f"Balance {balance}, cost {cost}",
            suggestion="Play a mini-game to earn more coins.",
            status_code=400,
        )


class NotFoundError(KnownError):
    """Raised when a named resource does not exist."""

    def __init__(self, resource: str, key: str, status_code: int = 404):
        self.resource = resource
        self.key = key
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message=f"{resource} not found",
            detail=f"{resource} '{key}' does not exist",
            status_code=status_code,
        )


class InvalidChallengeError(KnownError):
    """Raised for unknown, expired, or already-used challenge tokens."""

    def __init__(self, token: str):
        self.token = token
        super().__init__(
            kind=FailureKind.INVALID_CHALLENGE,
            message="Invalid or expired challenge",
            suggestion="Start a new challenge.",
            status_code=404,
        )


class UnauthorizedError(KnownError):
    """Raised when the admin token header is missing or wrong."""

    def __init__(self) -> None:
        super().__init__(
            kind=FailureKind.UNAUTHORIZED,
            message="Unauthorized",
            status_code=401,
        )


class AdminNotConfiguredError(KnownError):
    """
    Raised when admin routes are called but no admin token is configured.

    This is a server fault, never a silent bypass.
    """

    def __init__(self) -> None:
        super().__init__(
            kind=FailureKind.MISCONFIGURED,
            message="Admin token not configured on server",
            detail="ADMIN_TOKEN is empty",
            status_code=500,
        )


class UpstreamUnavailableError(KnownError):
    """Raised when an external catalog cannot be reached after retries."""

    def __init__(self, source: str, detail: str | None = None):
        self.source = source
        super().__init__(
            kind=FailureKind.UPSTREAM_UNAVAILABLE,
            message=f"Failed to fetch from {source}. Please try again later.",
            detail=detail,
            suggestion="Try again in a few moments.",
            status_code=502,
        )


class InternalError(KnownError):
    """Unexpected failure; any open transaction has been rolled back."""

    def __init__(self, detail: str | None = None):
        super().__init__(
            kind=FailureKind.INTERNAL_ERROR,
            message=INTERNAL_ERROR_MESSAGE,
            detail=detail,
            suggestion="If this persists, please report the issue.",
            status_code=500,
        )
