"""
Streamlit UI for the POS Tool.

Features:
- Cashier screen with member selection, scan/search, editable cart and checkout
- Product catalog with tier editing and validation
- Member registry
- Sales history with receipts and CSV export
"""
import streamlit as st
import pandas as pd
import sys
from pathlib import Path
from datetime import datetime

# Add src to path for imports
src_path = Path(__file__).parent.parent.parent
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from pos_tool.config.settings import get_settings
from pos_tool.engine import Cart, Member, Product, BulkTier, MemberPrice
from pos_tool.engine.errors import PosError, ValidationError
from pos_tool.logging_config import configure_logging
from pos_tool.services.catalog_service import CatalogService
from pos_tool.services.member_service import MemberService
from pos_tool.services.sales_service import SalesService, submit_cart


st.set_page_config(
    page_title="Cashier | Sinar Terang",
    layout="wide",
    initial_sidebar_state="expanded"
)


@st.cache_resource
def get_services():
    """Get cached service instances."""
    settings = get_settings()
    configure_logging(settings.log_level)
    members = MemberService(settings.members_csv)
    return (
        settings,
        CatalogService(settings.products_csv, members=members),
        members,
        SalesService(settings.sales_csv, settings.sale_lines_csv),
    )


try:
    settings, catalog, members, sales = get_services()
except Exception as e:
    st.error(f"System Error: {e}")
    st.stop()


def money(value: float) -> str:
    return f"{settings.currency} {value:,.0f}"


# ============================================================================
# SIDEBAR: Member Selection
# ============================================================================
if 'cart' not in st.session_state:
    st.session_state.cart = Cart()
cart: Cart = st.session_state.cart

with st.sidebar:
    st.header("👤 Customer")

    member_list = members.list_members()
    member_labels = {m.id: f"{m.id} - {m.name}" for m in member_list}
    member_ids = list(member_labels)
    current = cart.member_id if cart.member_id in member_labels else 0

    selected_member = st.selectbox(
        "Select Member",
        options=member_ids,
        index=member_ids.index(current),
        format_func=lambda mid: member_labels[mid],
    )
    if selected_member != cart.member_id:
        cart.change_member(selected_member)
        st.rerun()

    st.divider()
    st.metric("Items", cart.item_count())
    st.metric("Total", money(cart.grand_total()))


st.title("Sinar Terang")
st.caption(f"POS Tool | {datetime.now().strftime('%A, %d %b %Y')}")

tab1, tab2, tab3, tab4 = st.tabs(["🧾 Cashier", "📦 Products", "👥 Members", "📊 Sales"])


# ============================================================================
# TAB 1: CASHIER
# ============================================================================
with tab1:
    with st.container(border=True):
        st.markdown("##### 🔍 Input Product")
        search_term = st.text_input("Search", placeholder="Type id, name or barcode...", label_visibility="collapsed")
        candidates = catalog.search_products(search_term, limit=50)
        options = {p.id: p for p in candidates}

        c1, c2 = st.columns([4, 1])
        with c1:
            picked = st.selectbox(
                "Product",
                options=list(options),
                format_func=lambda pid: f"{pid} - {options[pid].name} - {options[pid].unit} - {money(options[pid].price)}",
                label_visibility="collapsed",
                index=None,
                placeholder="Search or select a product",
            )
        with c2:
            if st.button("➕ Add", type="primary", use_container_width=True, disabled=picked is None):
                cart.add_product(options[picked])
                st.rerun()

    if cart.is_empty():
        st.info("🛒 Cart is empty")
    else:
        st.markdown("### 📝 Line Items")
        for line in cart.lines():
            with st.container(border=True):
                c1, c2, c3, c4, c5 = st.columns([3, 1.2, 1.6, 1.4, 0.5])
                c1.markdown(f"**{line.name}**  \n{line.unit} · _{line.price_source}_")
                qty = c2.number_input(
                    "Qty", min_value=1, step=1, value=line.quantity, key=f"qty_{line.product_id}_{line.quantity}"
                )
                price = c3.number_input(
                    "Harga Satuan", min_value=0.0, step=100.0, value=float(line.unit_price),
                    key=f"price_{line.product_id}_{line.unit_price}_{line.price_source}"
                )
                c4.metric("Sub Total", money(line.subtotal))
                if c5.button("🗑️", key=f"rm_{line.product_id}"):
                    cart.remove_product(line.product_id)
                    st.rerun()

                try:
                    if qty != line.quantity:
                        cart.change_quantity(line.product_id, int(qty))
                        st.rerun()
                    if price != line.unit_price:
                        cart.set_manual_price(line.product_id, price)
                        st.rerun()
                except PosError as e:
                    st.error(str(e))

                if line.has_override and st.button("↩️ Automatic price", key=f"auto_{line.product_id}"):
                    cart.set_manual_price(line.product_id, None)
                    st.rerun()

        st.divider()
        m1, m2 = st.columns(2)
        m1.metric("Total", money(cart.grand_total()))
        m2.metric("Items", cart.item_count())

        b1, b2 = st.columns(2)
        with b1:
            if st.button("💾 Save Receipt", type="primary", use_container_width=True):
                try:
                    sale_id = submit_cart(cart, sales, members=members, kasir_id=settings.default_kasir_id)
                    st.success(f"Receipt saved successfully (#{sale_id})")
                except PosError as e:
                    st.error(f"Failed to save receipt: {e}")
        with b2:
            if st.button("🗑️ Clear", use_container_width=True):
                cart.clear()
                st.rerun()


# ============================================================================
# TAB 2: PRODUCTS
# ============================================================================
with tab2:
    st.subheader("📦 Products")
    product_search = st.text_input("Search Products", placeholder="Enter id, name or barcode...", label_visibility="collapsed")
    products = catalog.search_products(product_search, limit=1000)

    display = pd.DataFrame([{
        'ID': p.id,
        'Name': p.name,
        'Satuan': p.unit,
        'Modal': p.cost,
        'Harga': p.price,
        'Barcode': p.barcode,
        'Harga Grosir': ", ".join(f"≥{bt.min_qty} : {bt.price:,.0f}" for bt in p.bulk_tiers),
        'Member Prices': ", ".join(f"{mp.member_id} : {mp.price:,.0f}" for mp in p.member_prices),
    } for p in products])
    st.dataframe(display, use_container_width=True, hide_index=True)

    st.download_button(
        "📥 Export to CSV",
        data=catalog.export_csv(),
        file_name=f"Products_Export_{datetime.now():%Y-%m-%d}.csv",
        mime="text/csv",
    )

    with st.expander("➕ Add Product"):
        with st.form("add_product"):
            name = st.text_input("Name")
            unit = st.text_input("Satuan")
            f1, f2 = st.columns(2)
            cost = f1.number_input("Modal", min_value=0.0, step=100.0)
            base_price = f2.number_input("Harga", min_value=0.0, step=100.0)
            barcode = st.text_input("Barcode")
            note = st.text_area("Note")

            st.markdown("**Harga Grosir**")
            grosir_df = st.data_editor(
                pd.DataFrame({'min_qty': pd.Series(dtype='int'), 'harga': pd.Series(dtype='float')}),
                num_rows="dynamic", key="grosir_editor", use_container_width=True
            )
            st.markdown("**Member Prices**")
            member_df = st.data_editor(
                pd.DataFrame({'member_id': pd.Series(dtype='int'), 'harga': pd.Series(dtype='float')}),
                num_rows="dynamic", key="member_price_editor", use_container_width=True
            )

            if st.form_submit_button("Save", type="primary"):
                product = Product(
                    id=0,
                    name=name,
                    unit=unit,
                    price=base_price,
                    cost=cost,
                    barcode=barcode,
                    note=note,
                    member_prices=tuple(
                        MemberPrice(member_id=int(r['member_id']), price=float(r['harga']))
                        for r in member_df.dropna().to_dict(orient="records")
                    ),
                    bulk_tiers=tuple(
                        BulkTier(min_qty=int(r['min_qty']), price=float(r['harga']))
                        for r in grosir_df.dropna().to_dict(orient="records")
                    ),
                )
                try:
                    created = catalog.create_product(product)
                    st.success(f"Product {created.id} saved")
                except ValidationError as e:
                    for field_name, message in e.errors.items():
                        st.error(f"{field_name}: {message}")
                    if e.duplicate_bulk_indexes:
                        st.warning(f"Duplicate harga grosir rows: {e.duplicate_bulk_indexes}")
                    if e.duplicate_member_indexes:
                        st.warning(f"Duplicate member price rows: {e.duplicate_member_indexes}")

    uploaded = st.file_uploader("📤 Import CSV", type="csv")
    if uploaded is not None and st.button("Import"):
        rows = pd.read_csv(uploaded, dtype=str, keep_default_na=False).to_dict(orient="records")
        report = catalog.import_rows(rows)
        st.success(f"Imported {report.imported} product(s)")
        for idx, errors in report.errors.items():
            st.warning(f"Row {idx + 1}: {errors}")


# ============================================================================
# TAB 3: MEMBERS
# ============================================================================
with tab3:
    st.subheader("👥 Members")
    member_rows = [m.to_dict() for m in members.list_members(include_general=False)]
    st.dataframe(pd.DataFrame(member_rows), use_container_width=True, hide_index=True)

    with st.expander("➕ Add Member"):
        with st.form("add_member"):
            m_name = st.text_input("Name")
            m_address = st.text_input("Address")
            m_phone = st.text_input("Phone")
            m_note = st.text_area("Note")
            if st.form_submit_button("Save", type="primary"):
                try:
                    created = members.create_member(
                        Member(id=0, name=m_name, address=m_address, phone=m_phone, note=m_note)
                    )
                    st.success(f"Member {created.id} saved")
                except ValidationError as e:
                    st.error(", ".join(e.errors.values()))


# ============================================================================
# TAB 4: SALES
# ============================================================================
with tab4:
    st.subheader("📊 Sales")
    sales_list = sales.list_sales()
    st.dataframe(pd.DataFrame([{
        'ID': s.id,
        'Kasir': s.kasir_id,
        'Member Name': s.member_name,
        'Date Added': s.date_added,
        'Total': money(s.total),
    } for s in sales_list]), use_container_width=True, hide_index=True)

    st.download_button(
        "📥 Export to CSV",
        data=sales.export_csv(),
        file_name=f"Sales_Export_{datetime.now():%Y-%m-%d}.csv",
        mime="text/csv",
    )

    if sales_list:
        receipt_id = st.selectbox("🧾 Receipt", options=[s.id for s in sales_list])
        sale = sales.get_sale(receipt_id)
        names = {p.id: p.name for p in catalog.list_products()}
        st.dataframe(pd.DataFrame([{
            'Product': names.get(line.product_id, str(line.product_id)),
            'Qty': line.quantity,
            'Harga': money(line.price),
            'Sub Total': money(line.subtotal),
        } for line in sale.lines]), use_container_width=True, hide_index=True)
        st.markdown(f"**Total: {money(sale.total)}**")
