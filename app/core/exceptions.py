# app/core/exceptions.py
from __future__ import annotations

"""
ReelShare — Application Exceptions
==================================
A small layer on top of FastAPI/Starlette's `HTTPException` that carries a
stable machine-readable `code` next to the human message, rendered by
`app.core.exception_handlers` as problem+json.

Taxonomy
--------
- `ValidationFailed`   400  malformed or missing input (client fault)
- `NotAuthorized`      403  caller has no grant for the resource; on share paths
                            the message never says whether the resource exists
- `ShareTokenError`    400/404/410  MISSING_TOKEN / INVALID_TOKEN / EXPIRED
- `NotFound`           404  owner contexts only (org membership already proven)
- `StorageAccountingError` 500  reconciliation or usage bookkeeping failed
- `UpstreamFailure`    502  object storage or transcoder call failed
- `StorageLimitExceeded` 402  an upload would push the org past its quota

Usage
-----
    raise ShareTokenError.expired()
    raise NotAuthorized()
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

from app.schemas.enums import ShareFailureCode

__all__ = [
    "AppException",
    "ValidationFailed",
    "NotAuthorized",
    "NotFound",
    "ShareTokenError",
    "StorageAccountingError",
    "UpstreamFailure",
    "StorageLimitExceeded",
]


# ──────────────────────────────────────────────────────────────
# 📦 Core: AppException
# ──────────────────────────────────────────────────────────────
class AppException(HTTPException):
    """Base application-level exception with a stable string code.

    Attributes
    ----------
    status_code : int
        HTTP status code.
    message : str
        Human-readable message (also serialized as `detail`).
    code : str
        Stable identifier clients may branch on.
    details : Any
        Optional machine-readable context (never secrets).
    """

    default_code = "ERROR"

    def __init__(
        self,
        *,
        status_code: int,
        message: str,
        code: Optional[str] = None,
        details: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.message: str = message
        self.code: str = code or self.default_code
        self.details: Optional[Any] = details

    def to_problem(self) -> Dict[str, Any]:
        """Extra fields merged into the problem+json body."""
        body: Dict[str, Any] = {"code": self.code}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationFailed(AppException):
    default_code = "VALIDATION_FAILED"

    def __init__(self, message: str = "Invalid request", *, details: Optional[Any] = None) -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, message=message, details=details)


class NotAuthorized(AppException):
    """403 without revealing whether the target exists."""

    default_code = "NOT_AUTHORIZED"

    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, message=message)


class NotFound(AppException):
    default_code = "NOT_FOUND"

    def __init__(self, message: str = "Not found") -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, message=message)


# ──────────────────────────────────────────────────────────────
# 🔑 Share token failures
# ──────────────────────────────────────────────────────────────
_SHARE_STATUS = {
    ShareFailureCode.MISSING_TOKEN: (status.HTTP_400_BAD_REQUEST, "Missing token"),
    ShareFailureCode.INVALID_TOKEN: (status.HTTP_404_NOT_FOUND, "Invalid token"),
    ShareFailureCode.EXPIRED: (status.HTTP_410_GONE, "Link expired"),
}


class ShareTokenError(AppException):
    """Typed failure of `ShareAuthority.validate`.

    `INVALID_TOKEN` covers unknown tokens *and* links whose scope resolves to
    nothing; both carry the same status and message.
    """

    def __init__(self, failure: ShareFailureCode) -> None:
        status_code, message = _SHARE_STATUS[failure]
        super().__init__(status_code=status_code, message=message, code=failure.value)
        self.failure = failure

    @classmethod
    def missing(cls) -> "ShareTokenError":
        return cls(ShareFailureCode.MISSING_TOKEN)

    @classmethod
    def invalid(cls) -> "ShareTokenError":
        return cls(ShareFailureCode.INVALID_TOKEN)

    @classmethod
    def expired(cls) -> "ShareTokenError":
        return cls(ShareFailureCode.EXPIRED)


class StorageAccountingError(AppException):
    default_code = "STORAGE_ACCOUNTING_FAILED"

    def __init__(self, message: str = "Storage accounting failed") -> None:
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, message=message)


class UpstreamFailure(AppException):
    """An external collaborator (object storage, transcoder) failed."""

    default_code = "UPSTREAM_FAILED"

    def __init__(self, message: str = "Upstream service failed") -> None:
        super().__init__(status_code=status.HTTP_502_BAD_GATEWAY, message=message)


class StorageLimitExceeded(AppException):
    """402 with the figures that refused the upload, as decimal strings."""

    default_code = "STORAGE_LIMIT_EXCEEDED"

    def __init__(self, *, used_bytes: int, incoming_bytes: int, limit_bytes: int) -> None:
        super().__init__(
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            message="Storage limit exceeded",
            details={
                "used_bytes": str(used_bytes),
                "incoming_bytes": str(incoming_bytes),
                "remaining_bytes": str(max(0, limit_bytes - used_bytes)),
                "limit_bytes": str(limit_bytes),
            },
        )
