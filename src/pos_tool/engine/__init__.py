"""Engine subpackage - cart pricing logic and resolution."""
from .cart import Cart
from .models import (
    GENERAL_PUBLIC,
    GENERAL_PUBLIC_ID,
    BulkTier,
    CartSnapshot,
    LineItem,
    Member,
    MemberPrice,
    Product,
    SaleLine,
    SaleSubmission,
)
from .price_resolver import resolve_price, resolve_price_with_trace
from .tier_validator import TierValidationResult, ensure_valid_tiers, validate_tiers

__all__ = [
    'Cart', 'CartSnapshot', 'LineItem', 'Product', 'MemberPrice', 'BulkTier',
    'Member', 'GENERAL_PUBLIC', 'GENERAL_PUBLIC_ID', 'SaleLine', 'SaleSubmission',
    'resolve_price', 'resolve_price_with_trace',
    'validate_tiers', 'ensure_valid_tiers', 'TierValidationResult',
]
