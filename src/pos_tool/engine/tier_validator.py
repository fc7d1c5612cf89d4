"""
Tier Validator - Checks the pricing tiers attached to a product definition.

Runs when a product is authored (create, update, import), never during
checkout: carts only ever receive products that already passed.
"""
from dataclasses import dataclass, field
from typing import Callable, Collection, Iterable, Optional, Sequence, TypeVar

from .errors import ValidationError
from .models import GENERAL_PUBLIC_ID, BulkTier, MemberPrice

T = TypeVar("T")

MIN_BULK_QTY = 2

DUPLICATE_MEMBER_MESSAGE = "Member price must be unique per member"
DUPLICATE_BULK_MESSAGE = "Harga grosir must be unique per minimum quantity"


@dataclass
class TierValidationResult:
    """Result of tier validation."""
    duplicate_member_indexes: list[int] = field(default_factory=list)
    duplicate_bulk_indexes: list[int] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def valid(self) -> bool:
        return not (self.duplicate_member_indexes or self.duplicate_bulk_indexes or self.errors)


def get_duplicate_indexes(items: Iterable[T], key: Callable[[T], int]) -> list[int]:
    """
    Return the indexes of items whose key was already seen earlier.

    The first occurrence of a key is never reported; the second and every
    later one are.
    """
    seen: dict[int, int] = {}
    duplicates = []
    for idx, item in enumerate(items):
        value = key(item)
        if value in seen:
            duplicates.append(idx)
        else:
            seen[value] = idx
    return duplicates


def validate_tiers(
    member_prices: Sequence[MemberPrice],
    bulk_tiers: Sequence[BulkTier],
    member_ids: Optional[Collection[int]] = None,
) -> TierValidationResult:
    """
    Validate both tier collections of a product definition.

    When member_ids is given, every member price must point at one of them.
    """
    result = TierValidationResult()

    for idx, mp in enumerate(member_prices):
        if mp.member_id <= GENERAL_PUBLIC_ID:
            result.errors[f"member_prices_{idx}_member_id"] = "Member ID can't be 'Umum'"
        elif member_ids is not None and mp.member_id not in member_ids:
            result.errors[f"member_prices_{idx}_member_id"] = "Member not found"
        if mp.price < 0:
            result.errors[f"member_prices_{idx}_harga"] = "Member price must be a positive number"

    for idx, bt in enumerate(bulk_tiers):
        if bt.min_qty < MIN_BULK_QTY:
            result.errors[f"harga_grosir_{idx}_min_qty"] = "Minimum quantity must be > 1"
        if bt.price < 0:
            result.errors[f"harga_grosir_{idx}_harga"] = "Grosir price must be a positive number"

    result.duplicate_member_indexes = get_duplicate_indexes(member_prices, lambda mp: mp.member_id)
    result.duplicate_bulk_indexes = get_duplicate_indexes(bulk_tiers, lambda bt: bt.min_qty)

    if result.duplicate_member_indexes:
        result.errors["member_prices"] = DUPLICATE_MEMBER_MESSAGE
    if result.duplicate_bulk_indexes:
        result.errors["harga_grosir"] = DUPLICATE_BULK_MESSAGE

    return result


def ensure_valid_tiers(
    member_prices: Sequence[MemberPrice],
    bulk_tiers: Sequence[BulkTier],
    member_ids: Optional[Collection[int]] = None,
) -> TierValidationResult:
    """Validate and raise ValidationError if any tier row is rejected."""
    result = validate_tiers(member_prices, bulk_tiers, member_ids)
    if not result.valid:
        raise ValidationError(
            "Invalid pricing tiers",
            errors=result.errors,
            duplicate_member_indexes=result.duplicate_member_indexes,
            duplicate_bulk_indexes=result.duplicate_bulk_indexes,
        )
    return result
