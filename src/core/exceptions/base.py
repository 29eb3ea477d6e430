from typing import Any


class AppException(Exception):
    """Base application exception.

    `code` is a stable machine-readable identifier returned to API clients.
    """

    code = "APP_ERROR"

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(AppException):
    """Resource not found."""

    code = "NOT_FOUND"

    def __init__(self, resource: str, identifier: Any = None):
        message = f"{resource} not found"
        if identifier is not None:
            message = f"{resource} with id={identifier} not found"
        super().__init__(message=message, status_code=404)


class ValidationError(AppException):
    """Validation error.

    Raised before any write, so a rejected operation leaves the ledger untouched.
    """

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else {}
        super().__init__(message=message, status_code=422, details=details)


class InsufficientStockError(ValidationError):
    """Outgoing quantity exceeds stock available to allocate/issue."""

    code = "INSUFFICIENT_STOCK"

    def __init__(self, asset_id: int | str, requested: Any, available: Any):
        message = (
            f"Insufficient stock for asset {asset_id}: "
            f"requested {requested}, available {available}"
        )
        super().__init__(message=message, field="quantity")
        self.details.update(
            {"asset_id": asset_id, "requested": str(requested), "available": str(available)}
        )


class ExcessiveReturnError(ValidationError):
    """Returned quantity exceeds what is still checked out."""

    code = "EXCESSIVE_RETURN"

    def __init__(self, requested: Any, outstanding: Any):
        message = (
            f"Return quantity {requested} exceeds outstanding quantity {outstanding}"
        )
        super().__init__(message=message, field="return_quantity")
        self.details.update({"requested": str(requested), "outstanding": str(outstanding)})


class ConcurrencyError(AppException):
    """Row was modified by another request between read and write."""

    code = "CONCURRENT_MODIFICATION"

    def __init__(self, message: str = "Record was modified concurrently, reload and retry"):
        super().__init__(message=message, status_code=409)


class DuplicateError(AppException):
    """Duplicate resource."""

    code = "DUPLICATE"

    def __init__(self, resource: str, field: str, value: Any):
        message = f"{resource} with {field}={value} already exists"
        super().__init__(message=message, status_code=409, details={"field": field, "value": str(value)})
