"""Error kinds surfaced by the ledger, access and auth services.

Every error carries a stable machine-readable ``reason`` plus a human
readable message; routes turn them into ``HTTPException`` using
``status_code`` and ``detail``.
"""

from __future__ import annotations

from typing import Any


class LedgerError(Exception):
    kind = "internal"
    reason = "internal"
    status_code = 500
    message = "Internal error"

    def __init__(
        self,
        message: str | None = None,
        *,
        reason: str | None = None,
        status_code: int | None = None,
    ) -> None:
        if message is not None:
            self.message = message
        if reason is not None:
            self.reason = reason
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    @property
    def detail(self) -> dict[str, Any]:
        return {"reason": self.reason, "message": self.message}


class NotFound(LedgerError):
    kind = "not_found"
    status_code = 404

    def __init__(self, entity: str) -> None:
        self.entity = entity
        super().__init__(
            f"{entity.capitalize()} not found",
            reason=f"{entity}NotFound",
        )


class Conflict(LedgerError):
    kind = "conflict"
    status_code = 409

    _MESSAGES = {
        "alreadyEnrolled": "Already enrolled in this course",
        "emailUsed": "Email already used",
    }

    def __init__(self, reason: str, message: str | None = None) -> None:
        super().__init__(
            message or self._MESSAGES.get(reason, "Conflicting record"),
            reason=reason,
        )


class InsufficientFunds(LedgerError):
    kind = "insufficient_funds"
    reason = "insufficientFunds"
    status_code = 400
    message = "Insufficient balance"

    def __init__(self, required: int | None = None, available: int | None = None) -> None:
        self.required = required
        self.available = available
        super().__init__()


class ServiceDisabled(LedgerError):
    kind = "service_disabled"
    status_code = 403

    def __init__(self, feature: str) -> None:
        self.feature = feature
        super().__init__(
            f"{feature.capitalize()} is currently disabled",
            reason=f"{feature}Disabled",
        )


class InvalidRequest(LedgerError):
    kind = "invalid_request"
    reason = "invalidRequest"
    status_code = 422
    message = "Invalid request"

    def __init__(self, message: str, *, reason: str | None = None) -> None:
        super().__init__(message, reason=reason)


class InvalidCredentials(LedgerError):
    kind = "invalid_credentials"
    reason = "invalidCredentials"
    status_code = 401
    message = "Invalid credentials"


class LimitReached(LedgerError):
    kind = "limit_reached"
    status_code = 403

    def __init__(self, resource: str, limit: int) -> None:
        self.resource = resource
        self.limit = limit
        super().__init__(
            f"License limit reached: at most {limit} {resource}s",
            reason=f"{resource}LimitReached",
        )


class AuthenticationRequired(LedgerError):
    kind = "authentication_required"
    reason = "authenticationRequired"
    status_code = 401
    message = "Authentication required"


class AccessDenied(LedgerError):
    kind = "access_denied"
    reason = "accessDenied"
    status_code = 403
    message = "Access denied"


class Internal(LedgerError):
    pass


class PurchaseIncomplete(Internal):
    """A purchase stopped after money had already moved."""

    reason = "purchaseIncomplete"
    message = "Purchase could not be completed"

    def __init__(self, progress: Any, failed_step: Any) -> None:
        self.progress = progress
        self.failed_step = failed_step
        super().__init__()
