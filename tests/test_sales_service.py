"""
Tests for sale recording and cart checkout.
"""
import pytest

from pos_tool.engine.cart import Cart
from pos_tool.engine.errors import EmptyCartError, NotFoundError, ValidationError
from pos_tool.engine.models import BulkTier, Member, MemberPrice, Product, SaleLine, SaleSubmission
from pos_tool.services.member_service import MemberService
from pos_tool.services.sales_service import SalesService, submit_cart


@pytest.fixture
def sales(tmp_path):
    return SalesService(tmp_path / "sales.csv", tmp_path / "sale_lines.csv")


@pytest.fixture
def members(tmp_path):
    service = MemberService(tmp_path / "members.csv")
    service.create_member(Member(id=0, name="Toko Makmur"))
    return service


@pytest.fixture
def beras():
    return Product(
        id=1, name="Beras 5kg", unit="karung", price=10000,
        member_prices=(MemberPrice(1, 8500),),
        bulk_tiers=(BulkTier(10, 9000),),
    )


def test_record_and_read_sale(sales):
    submission = SaleSubmission(
        member_id=0,
        total=25000,
        lines=(SaleLine(1, 10000, 2), SaleLine(2, 5000, 1)),
        kasir_id=3,
    )
    sale_id = sales.record_sale(submission, member_name="Umum")

    sale = sales.get_sale(sale_id)
    assert sale.total == 25000
    assert sale.kasir_id == 3
    assert sale.member_name == "Umum"
    assert [(l.product_id, l.price, l.quantity) for l in sale.lines] == [(1, 10000, 2), (2, 5000, 1)]
    assert sale.to_dict()["products"][0]["subtotal"] == 20000


def test_sale_ids_increase_and_list_newest_first(sales):
    line = (SaleLine(1, 100, 1),)
    ids = [sales.record_sale(SaleSubmission(member_id=0, total=100, lines=line)) for _ in range(3)]
    assert ids == [1, 2, 3]
    assert [s.id for s in sales.list_sales()] == [3, 2, 1]


def test_inconsistent_total_rejected(sales):
    submission = SaleSubmission(member_id=0, total=999, lines=(SaleLine(1, 100, 2),))
    with pytest.raises(ValidationError) as exc_info:
        sales.record_sale(submission)
    assert "total" in exc_info.value.errors
    assert sales.list_sales() == []


@pytest.mark.parametrize("price, total", [
    (float("nan"), float("nan")),
    (float("inf"), float("inf")),
    (100, float("nan")),
])
def test_non_finite_amounts_rejected(sales, price, total):
    submission = SaleSubmission(member_id=0, total=total, lines=(SaleLine(1, price, 1),))
    with pytest.raises(ValidationError) as exc_info:
        sales.record_sale(submission)
    assert "total" in exc_info.value.errors
    assert sales.list_sales() == []


def test_empty_submission_rejected(sales):
    with pytest.raises(ValidationError):
        sales.record_sale(SaleSubmission(member_id=0, total=0, lines=()))


def test_missing_sale(sales):
    with pytest.raises(NotFoundError):
        sales.get_sale(1)


def test_submit_cart_records_effective_prices_and_clears(sales, members, beras):
    cart = Cart()
    cart.change_member(1)
    cart.add_product(beras)
    cart.change_quantity(1, 12)
    expected_total = cart.grand_total()

    sale_id = submit_cart(cart, sales, members=members, kasir_id=2)

    assert cart.is_empty()
    sale = sales.get_sale(sale_id)
    assert sale.member_id == 1
    assert sale.member_name == "Toko Makmur"
    assert sale.total == expected_total == 12 * 8500
    assert sale.lines[0].price == 8500
    assert sale.lines[0].quantity == 12


def test_submit_empty_cart_rejected(sales):
    with pytest.raises(EmptyCartError):
        submit_cart(Cart(), sales)
    assert sales.list_sales() == []


def test_failed_record_leaves_cart_intact(sales, beras):
    class FailingSales(SalesService):
        def record_sale(self, submission, member_name=""):
            raise ValidationError("backend rejected sale")

    failing = FailingSales(sales.sales_csv, sales.sale_lines_csv)
    cart = Cart()
    cart.add_product(beras)
    before = cart.snapshot()

    with pytest.raises(ValidationError):
        submit_cart(cart, failing)

    assert cart.snapshot() == before
    assert cart.item_count() == 1


def test_export_csv(sales):
    sales.record_sale(SaleSubmission(member_id=0, total=100, lines=(SaleLine(1, 100, 1),)))
    text = sales.export_csv()
    header, row = text.strip().splitlines()
    assert header == "id,kasir_id,member_id,member_name,total,date_added"
    assert row.startswith("1,1,0,")


def test_product_added_during_recording_stays_in_cart(sales, beras):
    gula = Product(id=2, name="Gula 1kg", unit="pcs", price=15000)
    cart = Cart()
    cart.add_product(beras)

    class AddingSales(SalesService):
        def record_sale(self, submission, member_name=""):
            cart.add_product(gula)
            return super().record_sale(submission, member_name)

    adding = AddingSales(sales.sales_csv, sales.sale_lines_csv)
    sale_id = submit_cart(cart, adding)

    assert [line.product_id for line in sales.get_sale(sale_id).lines] == [1]
    assert [line.product_id for line in cart.lines()] == [2]
