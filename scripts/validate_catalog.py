#!/usr/bin/env python
"""
Catalog lint - validates every product definition in products.csv.

Reports rejected fields and duplicate tier rows per product and exits
non-zero when any product is invalid.

Usage:
    python scripts/validate_catalog.py [--data-dir data]
"""
import argparse
import logging
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from pos_tool.config.settings import Settings
from pos_tool.logging_config import configure_logging
from pos_tool.services.catalog_service import CatalogService
from pos_tool.services.member_service import MemberService

logger = logging.getLogger("validate_catalog")


def main():
    parser = argparse.ArgumentParser(description="Validate the product catalog")
    parser.add_argument("--data-dir", default=None, help="Directory holding products.csv.")
    args = parser.parse_args()

    settings = Settings.load(Path(args.data_dir) if args.data_dir else None)
    configure_logging(settings.log_level)
    catalog = CatalogService(settings.products_csv, members=MemberService(settings.members_csv))

    print("=" * 60)
    print("CATALOG VALIDATION")
    print("=" * 60)

    products = catalog.list_products()
    member_ids = catalog.known_member_ids()
    invalid = 0
    for product in products:
        result = catalog.validate_product(product, member_ids)
        if result.valid:
            continue
        invalid += 1
        print(f"\n❌ {product.id} - {product.name}")
        for field_name, message in result.errors.items():
            print(f"  {field_name}: {message}")
        if result.duplicate_member_indexes:
            print(f"  duplicate member price rows: {result.duplicate_member_indexes}")
        if result.duplicate_bulk_indexes:
            print(f"  duplicate harga grosir rows: {result.duplicate_bulk_indexes}")

    print()
    print(f"Products checked: {len(products)}")
    print(f"Invalid: {invalid}")
    logger.info("Validated %d product(s), %d invalid", len(products), invalid)

    if invalid:
        sys.exit(1)
    print("✅ CATALOG OK")


if __name__ == "__main__":
    main()
