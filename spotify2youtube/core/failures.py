"""Playlist insert failure taxonomy.

The YouTube API reports a failed ``playlistItems.insert`` as an HTTP status plus
an error ``reason``. Both are mapped onto a fixed set of kinds through the
lookup tables below.
"""

from enum import Enum


class FailureKind(str, Enum):
    VIDEO_PRIVATE_OR_DELETED = "VIDEO_PRIVATE_OR_DELETED"
    VIDEO_NOT_FOUND = "VIDEO_NOT_FOUND"
    VIDEO_EMBEDDING_DISABLED = "VIDEO_EMBEDDING_DISABLED"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    FORBIDDEN_GENERIC = "FORBIDDEN_GENERIC"
    BAD_REQUEST = "BAD_REQUEST"
    NETWORK_ERROR = "NETWORK_ERROR"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: str | None) -> "FailureKind":
        """Read a stored kind, folding kinds written by older versions."""
        if not value:
            return cls.UNKNOWN
        try:
            return cls(value)
        except ValueError:
            return LEGACY_KINDS.get(value, cls.UNKNOWN)


LEGACY_KINDS = {
    "FORBIDDEN_OTHER": FailureKind.FORBIDDEN_GENERIC,
    "HTTP_ERROR": FailureKind.UNKNOWN,
    "UNEXPECTED_ERROR": FailureKind.UNKNOWN,
}

# reason -> kind, for 403 responses
FORBIDDEN_REASONS = {
    "playlistItemsNotAccessible": FailureKind.VIDEO_PRIVATE_OR_DELETED,
    "videoNotFound": FailureKind.VIDEO_NOT_FOUND,
    "forbidden": FailureKind.VIDEO_EMBEDDING_DISABLED,
    "quotaExceeded": FailureKind.QUOTA_EXCEEDED,
    "dailyLimitExceeded": FailureKind.QUOTA_EXCEEDED,
}

STATUS_KINDS = {
    400: FailureKind.BAD_REQUEST,
    404: FailureKind.VIDEO_NOT_FOUND,
}

MESSAGES = {
    FailureKind.VIDEO_PRIVATE_OR_DELETED: "Video is private, deleted, or not accessible",
    FailureKind.VIDEO_NOT_FOUND: "Video not found or has been deleted",
    FailureKind.VIDEO_EMBEDDING_DISABLED: "Video owner has disabled adding to playlists",
    FailureKind.QUOTA_EXCEEDED: "Daily API quota exceeded",
    FailureKind.FORBIDDEN_GENERIC: "Access forbidden - video may be restricted",
    FailureKind.BAD_REQUEST: "Invalid request parameters",
    FailureKind.NETWORK_ERROR: "Network connection error",
    FailureKind.UNKNOWN: "Unknown error",
}


def classify_add_error(status: int | None, reason: str | None) -> FailureKind:
    """Map an HTTP status and API error reason to a failure kind."""
    if status is None:
        return FailureKind.NETWORK_ERROR
    if reason in ("quotaExceeded", "dailyLimitExceeded"):
        return FailureKind.QUOTA_EXCEEDED
    if status == 403:
        return FORBIDDEN_REASONS.get(reason, FailureKind.FORBIDDEN_GENERIC)
    return STATUS_KINDS.get(status, FailureKind.UNKNOWN)


def describe(kind: FailureKind, reason: str | None = None) -> str:
    if kind is FailureKind.FORBIDDEN_GENERIC and reason:
        return f"Forbidden: {reason}"
    return MESSAGES[kind]
