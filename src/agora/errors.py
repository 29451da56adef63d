"""Domain error taxonomy.

Every error carries a stable machine-readable ``code`` and a free-text
``detail``; the global handler turns them into ``{"error", "detail", ...}``
JSON bodies with ``status_code``.
"""

from __future__ import annotations

from typing import Any


class AgoraError(Exception):
    """Base class for errors surfaced to API clients."""

    code = "InternalError"
    status_code = 500

    def __init__(self, detail: str, **extra: Any) -> None:
        super().__init__(detail)
        self.detail = detail
        self.extra = extra

    def to_body(self) -> dict[str, Any]:
        return {"error": self.code, "detail": self.detail, **self.extra}


# ---------------------------------------------------------------------------
# 4xx: resolved locally, nothing submitted or mutated
# ---------------------------------------------------------------------------


class ValidationError(AgoraError):
    """Bad or missing input."""

    code = "ValidationError"
    status_code = 400

    def __init__(self, fields: list[str], detail: str | None = None) -> None:
        super().__init__(detail or f"Invalid or missing fields: {', '.join(fields)}", fields=fields)
        self.fields = fields


class InvalidAchievementKind(AgoraError):
    code = "InvalidAchievementKind"
    status_code = 400

    def __init__(self, value: object) -> None:
        super().__init__(f"Invalid achievement type: {value!r}", achievementType=value)


class AlreadyClaimed(AgoraError):
    code = "AlreadyClaimed"
    status_code = 400

    def __init__(self, achievement_type: int, nft_id: str | None) -> None:
        super().__init__("Achievement already claimed", achievementType=achievement_type, nftId=nft_id)
        self.nft_id = nft_id


class DuplicateConstraintViolation(Exception):
    """Raised by the store when a unique constraint rejects an insert.

    Never reaches clients directly; callers map it to AlreadyClaimed.
    """

    def __init__(self, user_id: int, achievement_type: int) -> None:
        super().__init__(f"Claim for user {user_id} kind {achievement_type} already exists")
        self.user_id = user_id
        self.achievement_type = achievement_type


class NotEligible(AgoraError):
    code = "NotEligible"
    status_code = 400

    def __init__(self, achievement_type: int, stats: dict[str, Any]) -> None:
        super().__init__(
            "Not eligible for this achievement",
            requiredFor=achievement_type,
            stats=stats,
        )


class ProfileAlreadyExists(AgoraError):
    code = "ProfileAlreadyExists"
    status_code = 400

    def __init__(self, profile_id: str) -> None:
        super().__init__("Profile already exists", profileId=profile_id)


class UserNotFound(AgoraError):
    code = "UserNotFound"
    status_code = 404

    def __init__(self, user_id: int) -> None:
        super().__init__(f"User {user_id} not found")


# ---------------------------------------------------------------------------
# 5xx: submission side
# ---------------------------------------------------------------------------


class TransportFailure(AgoraError):
    """Executor or network failure. ``retryable`` marks sequencing/timeouts."""

    code = "TransportFailure"
    status_code = 502

    def __init__(self, detail: str, *, retryable: bool = False) -> None:
        super().__init__(detail, retryable=retryable)
        self.retryable = retryable
        if retryable:
            self.status_code = 503


class CreationNotConfirmed(AgoraError):
    """The transaction went through but the expected object is missing."""

    code = "CreationNotConfirmed"
    status_code = 502

    def __init__(self, expected_type: str, digest: str) -> None:
        super().__init__(f"No created object of type {expected_type} in transaction result", digest=digest)
        self.digest = digest


class PersistenceInconsistency(AgoraError):
    """Chain state confirmed but the relational update failed."""

    code = "PersistenceInconsistency"
    status_code = 500

    def __init__(self, action: str, digest: str, cause: str) -> None:
        super().__init__(
            f"{action} confirmed on chain but local state was not updated: {cause}",
            digest=digest,
            action=action,
        )
        self.digest = digest
