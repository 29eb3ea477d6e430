from src.core.exceptions.base import (
    AppException,
    NotFoundError,
    ValidationError,
    InsufficientStockError,
    ExcessiveReturnError,
    ConcurrencyError,
    DuplicateError,
)

__all__ = [
    "AppException",
    "NotFoundError",
    "ValidationError",
    "InsufficientStockError",
    "ExcessiveReturnError",
    "ConcurrencyError",
    "DuplicateError",
]
