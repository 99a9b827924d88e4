"""
Error taxonomy for the portal.

Services raise these directly; they are ``HTTPException`` subclasses so the
routers let them propagate untouched. ``ExternalSyncFailure`` is the one
exception that never reaches a client: the CRM sync adapter catches it.
"""

from fastapi import HTTPException


class PortalError(HTTPException):
    status_code = 400
    code = "ERROR"
    default_detail = "Request failed"

    def __init__(self, detail: str | None = None):
        super().__init__(status_code=self.status_code, detail=detail or self.default_detail)


class Unauthorized(PortalError):
    status_code = 401
    code = "UNAUTHORIZED"
    default_detail = "Unauthorized"


class NotFound(PortalError):
    status_code = 404
    code = "NOT_FOUND"
    default_detail = "Not found"


class Forbidden(PortalError):
    status_code = 403
    code = "FORBIDDEN"
    default_detail = "Forbidden"


class InvalidInput(PortalError):
    code = "INVALID_INPUT"
    default_detail = "Invalid input"


class InvalidAmount(InvalidInput):
    code = "INVALID_AMOUNT"
    default_detail = "Amount must be a positive number"


class InsufficientBalance(PortalError):
    code = "INSUFFICIENT_BALANCE"
    default_detail = "Insufficient points"


class RewardNotRedeemable(PortalError):
    code = "REWARD_NOT_REDEEMABLE"
    default_detail = "This reward cannot be redeemed right now"


class InvalidOrExpired(PortalError):
    code = "INVALID_OR_EXPIRED"
    default_detail = "Invalid or expired token"


class AlreadyConsumed(InvalidOrExpired):
    code = "ALREADY_CONSUMED"
    default_detail = "This redemption has already been used"


class Conflict(PortalError):
    status_code = 409
    code = "CONFLICT"
    default_detail = "Conflict"


class ExternalSyncFailure(Exception):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
