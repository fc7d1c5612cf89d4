"""
Tests for the product catalog service.
"""
import json

import pytest

from pos_tool.engine.errors import NotFoundError, ValidationError
from pos_tool.engine.models import BulkTier, Member, MemberPrice, Product
from pos_tool.services.catalog_service import CatalogService
from pos_tool.services.member_service import MemberService


@pytest.fixture
def catalog(tmp_path):
    return CatalogService(tmp_path / "products.csv")


def make_product(**overrides) -> Product:
    data = dict(
        id=0,
        name="Beras 5kg",
        unit="karung",
        price=10000,
        cost=8000,
        barcode="899100200300",
        member_prices=(MemberPrice(7, 8500),),
        bulk_tiers=(BulkTier(10, 9000), BulkTier(5, 9500)),
    )
    data.update(overrides)
    return Product(**data)


def test_empty_catalog(catalog):
    assert catalog.list_products() == []
    assert catalog.search_products("beras") == []


def test_create_assigns_ids_and_round_trips(catalog):
    first = catalog.create_product(make_product())
    second = catalog.create_product(make_product(name="Gula", barcode="111"))

    assert first.id == 1
    assert second.id == 2
    assert catalog.get_product(1) == first
    assert catalog.list_products() == [first, second]


def test_barcode_kept_as_text(catalog):
    created = catalog.create_product(make_product(barcode="0012345"))
    assert catalog.get_product(created.id).barcode == "0012345"


def test_tiers_stored_as_json_with_original_keys(catalog):
    catalog.create_product(make_product())
    text = catalog.export_csv()
    assert "harga_grosir" in text.splitlines()[0]

    row = catalog._load_frame().iloc[0]
    assert json.loads(row["harga_grosir"]) == [
        {"min_qty": 10, "harga": 9000},
        {"min_qty": 5, "harga": 9500},
    ]
    assert json.loads(row["member_prices"]) == [{"member_id": 7, "harga": 8500}]


def test_duplicate_tiers_rejected_and_nothing_written(catalog):
    bad = make_product(bulk_tiers=(BulkTier(5, 9000), BulkTier(5, 8500)))

    with pytest.raises(ValidationError) as exc_info:
        catalog.create_product(bad)

    assert exc_info.value.duplicate_bulk_indexes == [1]
    assert not catalog.products_csv.exists()


def test_validate_product_form_fields(catalog):
    result = catalog.validate_product(make_product(name=" ", unit="", barcode="", price=-1, cost=-1))
    assert not result.valid
    assert set(result.errors) >= {"name", "satuan", "barcode", "harga", "modal"}


def test_validate_product_reports_tier_rows(catalog):
    result = catalog.validate_product(
        make_product(member_prices=(MemberPrice(7, 1), MemberPrice(7, 2), MemberPrice(0, 3)))
    )
    assert result.duplicate_member_indexes == [1]
    assert "member_prices_2_member_id" in result.errors


def test_explicit_duplicate_id_rejected(catalog):
    catalog.create_product(make_product(id=5))
    with pytest.raises(ValidationError):
        catalog.create_product(make_product(id=5, name="Other"))


def test_update_and_delete(catalog):
    created = catalog.create_product(make_product())
    updated = catalog.update_product(make_product(id=created.id, price=11000, bulk_tiers=()))

    assert catalog.get_product(created.id).price == 11000
    assert catalog.get_product(created.id).bulk_tiers == ()
    assert updated.id == created.id

    assert catalog.delete_product(created.id) is True
    with pytest.raises(NotFoundError):
        catalog.get_product(created.id)


def test_update_missing_product(catalog):
    with pytest.raises(NotFoundError):
        catalog.update_product(make_product(id=99))


def test_delete_missing_product(catalog):
    with pytest.raises(NotFoundError):
        catalog.delete_product(99)


def test_search_by_name_barcode_and_id(catalog):
    catalog.create_product(make_product(name="Beras Pandan", barcode="AAA1"))
    catalog.create_product(make_product(name="Gula Pasir", barcode="BBB2"))

    assert [p.name for p in catalog.search_products("pandan")] == ["Beras Pandan"]
    assert [p.name for p in catalog.search_products("bbb")] == ["Gula Pasir"]
    assert [p.name for p in catalog.search_products("2")] == ["Gula Pasir"]
    assert len(catalog.search_products(None)) == 2
    assert len(catalog.search_products("", limit=1)) == 1


def test_search_term_is_literal(catalog):
    catalog.create_product(make_product(name="Kopi (sachet)"))
    assert len(catalog.search_products("(sachet")) == 1


def test_import_rows_upserts_and_reports(catalog):
    existing = catalog.create_product(make_product())
    rows = [
        {
            "id": str(existing.id), "name": "Beras 5kg", "satuan": "karung",
            "modal": "8000", "harga": "10500", "barcode": "899100200300",
            "member_prices": "[]", "harga_grosir": '[{"min_qty": 3, "harga": 10000}]',
        },
        {
            "id": "", "name": "Minyak 1L", "satuan": "botol", "modal": "14000",
            "harga": "16000", "barcode": "777", "member_prices": "", "harga_grosir": "",
        },
        {
            "id": "", "name": "Telur", "satuan": "kg", "modal": "20000", "harga": "25000",
            "barcode": "888", "harga_grosir": '[{"min_qty": 5, "harga": 1}, {"min_qty": 5, "harga": 2}]',
        },
        {"id": "", "name": "Rusak", "satuan": "pcs", "harga": "10", "barcode": "1", "member_prices": "{not json"},
    ]

    report = catalog.import_rows(rows)

    assert report.updated == 1
    assert report.created == 1
    assert report.imported == 2
    assert set(report.errors) == {2, 3}
    assert report.errors[2]["harga_grosir"] == "Harga grosir must be unique per minimum quantity"

    products = catalog.list_products()
    assert [p.name for p in products] == ["Beras 5kg", "Minyak 1L"]
    assert products[0].price == 10500
    assert products[0].bulk_tiers == (BulkTier(3, 10000),)
    assert products[1].id == 2


def test_export_then_import_preserves_catalog(catalog, tmp_path):
    import io

    import pandas as pd

    catalog.create_product(make_product())
    catalog.create_product(make_product(name="Gula", barcode="222", member_prices=()))
    exported = catalog.export_csv()

    other = CatalogService(tmp_path / "other.csv")
    rows = pd.read_csv(io.StringIO(exported), dtype=str, keep_default_na=False).to_dict(orient="records")
    report = other.import_rows(rows)

    assert report.errors == {}
    assert other.list_products() == catalog.list_products()


@pytest.fixture
def checked_catalog(tmp_path):
    members = MemberService(tmp_path / "members.csv")
    members.create_member(Member(id=0, name="Toko Makmur"))
    return CatalogService(tmp_path / "products.csv", members=members)


def test_member_price_for_unknown_member_rejected(checked_catalog):
    with pytest.raises(ValidationError) as exc_info:
        checked_catalog.create_product(make_product(member_prices=(MemberPrice(999, 50),)))

    assert exc_info.value.errors["member_prices_0_member_id"] == "Member not found"
    assert checked_catalog.list_products() == []


def test_member_price_for_known_member_accepted(checked_catalog):
    created = checked_catalog.create_product(make_product(member_prices=(MemberPrice(1, 8500),)))
    assert checked_catalog.get_product(created.id).member_prices == (MemberPrice(1, 8500),)


def test_import_rejects_rows_pricing_unknown_members(checked_catalog):
    rows = [
        {"id": "", "name": "Gula", "satuan": "pcs", "harga": "15000", "barcode": "1",
         "member_prices": '[{"member_id": 1, "harga": 14000}]'},
        {"id": "", "name": "Kopi", "satuan": "pcs", "harga": "3000", "barcode": "2",
         "member_prices": '[{"member_id": 999, "harga": 2500}]'},
    ]

    report = checked_catalog.import_rows(rows)

    assert report.created == 1
    assert report.errors == {1: {"member_prices_0_member_id": "Member not found"}}
