# Overview: Domain exception taxonomy; each error knows the HTTP status it maps to.


class VoucherDeskError(Exception):
    """Base class for errors that routes turn into JSON error responses."""
    status_code = 500

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"error": str(self)}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(VoucherDeskError, ValueError):
    """400-level input problem."""
    status_code = 400


class ConflictError(VoucherDeskError, ValueError):
    """409-level uniqueness conflict (duplicate username, voucher code)."""
    status_code = 409


class NotFoundError(VoucherDeskError):
    status_code = 404


class ForbiddenError(VoucherDeskError):
    status_code = 403


class UnauthenticatedError(VoucherDeskError):
    status_code = 401


class InsufficientStockError(VoucherDeskError):
    """Requested quantity exceeds the stock held by the source."""
    status_code = 400


class AlreadyUsedError(VoucherDeskError):
    """Customer voucher unit has already been redeemed."""
    status_code = 400
