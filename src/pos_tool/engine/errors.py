"""
Exceptions raised by the pricing engine and the services built on it.
"""
from typing import Optional


class PosError(Exception):
    """Base exception"""
    pass


class ValidationError(PosError):
    """
    A product definition (or other authored record) failed validation.

    Carries the per-field messages and, for tier collections, the indexes of
    the offending rows so a form can flag them.
    """

    def __init__(
        self,
        message: str,
        errors: Optional[dict[str, str]] = None,
        duplicate_member_indexes: Optional[list[int]] = None,
        duplicate_bulk_indexes: Optional[list[int]] = None,
    ):
        super().__init__(message)
        self.errors = errors or {}
        self.duplicate_member_indexes = duplicate_member_indexes or []
        self.duplicate_bulk_indexes = duplicate_bulk_indexes or []

    def to_dict(self) -> dict:
        return {
            "message": str(self),
            "errors": self.errors,
            "duplicate_member_indexes": self.duplicate_member_indexes,
            "duplicate_bulk_indexes": self.duplicate_bulk_indexes,
        }


class InvalidQuantity(PosError, ValueError):
    """Line quantity below 1 or not a whole number"""
    pass


class InvalidPrice(PosError, ValueError):
    """Negative manual unit price"""
    pass


class EmptyCartError(PosError):
    """Checkout attempted with no line items"""
    pass


class NotFoundError(PosError, LookupError):
    """Product, member or sale does not exist"""
    pass


class LineNotFound(PosError, LookupError):
    """No line item for the product in the active cart"""
    pass
