"""Engine exceptions carrying the HTTP status the API layer should use."""

from __future__ import annotations


class EduSphereError(Exception):
    """Base exception for the achievements engine."""

    def __init__(
        self,
        detail: str,
        status_code: int = 400,
        error_code: str | None = None,
    ) -> None:
        self.detail = detail
        self.status_code = status_code
        self.error_code = error_code or "EDUSPHERE_ERROR"
        super().__init__(self.detail)


class UnknownBadge(EduSphereError):
    def __init__(self, badge_key: str) -> None:
        super().__init__(
            detail=f"Unknown badge: {badge_key}",
            status_code=404,
            error_code="UNKNOWN_BADGE",
        )
        self.badge_key = badge_key


class StorageUnavailable(EduSphereError):
    def __init__(self, message: str = "Storage is unavailable") -> None:
        super().__init__(
            detail=message,
            status_code=503,
            error_code="STORAGE_UNAVAILABLE",
        )
