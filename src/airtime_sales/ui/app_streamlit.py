"""
Streamlit UI for the Airtime Sales Tool.

Features:
- Tabbed interface for Customers, Products, Packages, Orders and Quotation
- Live pricing preview recalculated on every input change
- Save / backup / import / clear of the JSON snapshot
- Printable quotation text and CSV/Excel export
"""
import io
import json
import sys
from datetime import date, datetime
from pathlib import Path

import pandas as pd
import streamlit as st

# Add src to path for imports
src_path = Path(__file__).parent.parent.parent
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from airtime_sales.config.settings import configure_logging, get_settings
from airtime_sales.engine.dates import DurationMode
from airtime_sales.engine.models import CustomerCategory, PaymentTiming
from airtime_sales.records.models import Customer, ItemKind, PotentialLevel, Product, ProductType, item_price
from airtime_sales.records.schedule import TIME_SLOTS, WEEKDAYS
from airtime_sales.services.app_state import AppState
from airtime_sales.services.order_service import OrderSelection
from airtime_sales.services.quotation_service import format_money
from airtime_sales.services.storage_service import SnapshotError, backup_file_name


st.set_page_config(
    page_title="Airtime Sales",
    layout="wide",
    initial_sidebar_state="expanded"
)


@st.cache_resource
def get_state():
    """Get cached application state."""
    settings = get_settings()
    configure_logging(settings)
    return AppState(settings)


try:
    state = get_state()
    settings = state.settings
except Exception as e:
    st.error(f"System Error: {e}")
    st.stop()


def autosave():
    """Mark a change; it is written now if the interval has passed, else by the timer."""
    state.mark_dirty()
    state.flush_if_due()


@st.fragment(run_every=settings.autosave_seconds)
def autosave_timer():
    if state.flush_if_due():
        st.caption(f"Autosaved at {datetime.now():%H:%M:%S}")


# ============================================================================
# SIDEBAR: Snapshot management
# ============================================================================
with st.sidebar:
    st.header(f"📻 {settings.station_name}")
    st.caption(settings.station_frequency)

    stats = state.records.get_stats()
    st.metric("Orders", stats['orders'])

    if st.button("💾 Save", use_container_width=True):
        state.save()
        st.success("Saved")
    autosave_timer()

    st.download_button(
        "📥 Backup (JSON)",
        data=json.dumps(state.data.to_dict(), ensure_ascii=False, indent=2),
        file_name=backup_file_name(date.today()),
        mime="application/json",
        use_container_width=True,
    )

    uploaded = st.file_uploader("Import backup", type=["json"])
    if uploaded is not None and st.button("⬆️ Replace current data", use_container_width=True):
        try:
            imported = state.storage.parse(uploaded.getvalue())
        except SnapshotError as e:
            st.error(f"Import failed: {e}")
        else:
            state.replace_data(imported)
            state.save()
            st.success("Import complete")
            st.rerun()

    with st.expander("⚠️ Danger zone"):
        if st.button("🗑️ Clear all data", type="secondary"):
            state.clear()
            st.rerun()

    if state.data.settings.last_save:
        st.caption(f"Last saved: {state.data.settings.last_save}")


# ============================================================================
# MAIN CONTENT: TABBED INTERFACE
# ============================================================================
st.title("Airtime Sales")

tab1, tab2, tab3, tab4, tab5 = st.tabs(["👥 Customers", "📦 Products", "🎁 Packages", "🧮 Orders", "📄 Quotation"])


# ============================================================================
# TAB 1: CUSTOMERS
# ============================================================================
with tab1:
    search = st.text_input("Search", placeholder="Company or contact name...", key="customer_search")
    customers = state.records.search_customers(search)
    st.subheader(f"Customers ({len(state.data.customers)})")
    if customers:
        st.dataframe(pd.DataFrame([{
            'ID': c.id, 'Company': c.company, 'Type': c.type.label, 'Contact': c.name,
            'Phone': c.phone, 'Email': c.email, 'Potential': c.potential.label,
        } for c in customers]), use_container_width=True, hide_index=True)

    with st.form("customer_form", clear_on_submit=True):
        st.markdown("##### ➕ New customer")
        c1, c2 = st.columns(2)
        company = c1.text_input("Company *")
        ctype = c2.selectbox("Type", list(CustomerCategory), format_func=lambda t: t.label)
        name = c1.text_input("Contact name *")
        position = c2.text_input("Position")
        phone = c1.text_input("Phone *")
        email = c2.text_input("Email")
        category = c1.text_input("Business category")
        potential = c2.selectbox("Potential", list(PotentialLevel), index=1, format_func=lambda p: p.label)
        address = st.text_area("Address", height=70)
        note = st.text_input("Note")
        if st.form_submit_button("Save customer", type="primary"):
            try:
                state.records.create_customer(Customer(
                    company=company, name=name, phone=phone, type=ctype, category=category or None,
                    address=address or None, position=position or None, email=email,
                    potential=potential, note=note or None,
                ))
                autosave()
                st.rerun()
            except ValueError as e:
                st.warning(str(e))

    if customers:
        to_delete = st.selectbox("Delete customer", [""] + [c.id for c in customers], key="del_customer")
        if to_delete and st.button("Delete", key="del_customer_btn"):
            state.records.delete_customer(to_delete)
            autosave()
            st.rerun()


# ============================================================================
# TAB 2: PRODUCTS
# ============================================================================
with tab2:
    groups = state.records.group_products_by_type()
    cols = st.columns(len(groups))
    for col, (ptype, products) in zip(cols, groups.items()):
        with col:
            st.markdown(f"##### {ptype.label} ({len(products)})")
            for p in products:
                promo = " 🏷️" if p.promotion else ""
                st.caption(f"**{p.name}** · {format_money(p.price)} ฿{promo}")

    with st.form("product_form", clear_on_submit=True):
        st.markdown("##### ➕ New product")
        c1, c2, c3 = st.columns(3)
        pname = c1.text_input("Name *")
        ptype = c2.selectbox("Type", list(ProductType), format_func=lambda t: t.label)
        price = c3.number_input("Price (฿)", min_value=0.0, step=100.0)
        promotion = st.checkbox("Has promotion")
        promotion_detail = st.text_input("Promotion detail")
        pnote = st.text_input("Note", key="product_note")
        if st.form_submit_button("Save product", type="primary"):
            try:
                state.records.create_product(Product(
                    name=pname, price=price, type=ptype, promotion=promotion,
                    promotion_detail=promotion_detail or None, note=pnote or None,
                ))
                autosave()
                st.rerun()
            except ValueError as e:
                st.warning(str(e))


# ============================================================================
# TAB 3: PACKAGES
# ============================================================================
with tab3:
    for pkg in state.records.list_packages():
        with st.container(border=True):
            st.markdown(f"**{pkg.name}** · {format_money(pkg.total_price)} ฿")
            st.caption(", ".join(p.name for p in pkg.products))

    with st.form("package_form", clear_on_submit=True):
        st.markdown("##### ➕ New package")
        pkg_name = st.text_input("Package name *")
        chosen = st.multiselect(
            "Products",
            options=[p.id for p in state.data.products],
            format_func=lambda pid: next(f"{p.name} ({format_money(p.price)} ฿)"
                                         for p in state.data.products if p.id == pid),
        )
        pkg_note = st.text_input("Note", key="package_note")
        if st.form_submit_button("Save package", type="primary"):
            try:
                state.records.create_package(pkg_name, chosen, pkg_note or None)
                autosave()
                st.rerun()
            except ValueError as e:
                st.warning(str(e))


# ============================================================================
# TAB 4: ORDERS
# ============================================================================
with tab4:
    col1, col2 = st.columns([1.8, 1.2], gap="large")

    with col1:
        st.subheader("New order")
        customer_ids = [c.id for c in state.data.customers]
        customer_id = st.selectbox(
            "Customer", [""] + customer_ids,
            format_func=lambda cid: "-- select --" if not cid else next(
                f"{c.company} ({c.name})" for c in state.data.customers if c.id == cid),
        )
        category = state.orders.customer_category(customer_id or None)
        st.caption(f"Organisation type: **{category.label}**")

        kind = st.radio("Item kind", list(ItemKind), horizontal=True, format_func=lambda k: k.value)
        items = state.orders.available_items(kind)
        item_id = st.selectbox(
            "Item", [""] + [i.id for i in items],
            format_func=lambda iid: "-- select --" if not iid else next(
                f"{i.name} ({format_money(item_price(i))} ฿)" for i in items if i.id == iid),
        )

        st.markdown("##### 🕒 Time slots")
        slots = []
        for period in TIME_SLOTS:
            st.caption(period['period'])
            slot_cols = st.columns(len(period['slots']))
            for slot_col, slot in zip(slot_cols, period['slots']):
                if slot_col.checkbox(slot, key=f"slot_{slot}"):
                    slots.append(slot)
        st.caption(f"Selected: {len(slots)} times/day")

        mode = st.radio("Duration", list(DurationMode), horizontal=True, format_func=lambda m: m.value)
        d1, d2 = st.columns(2)
        start = d1.date_input("Start date", value=date.today())
        end = None
        duration_value = None
        if mode == DurationMode.DATE:
            end = d2.date_input("End date", value=date.today())
        else:
            duration_value = d2.number_input(f"Number of {mode.value}", min_value=1, value=1, step=1)

        days = st.multiselect(
            "Broadcast weekdays", [v for _, v in WEEKDAYS], default=[1, 2, 3, 4, 5],
            format_func=lambda v: dict((val, label) for label, val in WEEKDAYS)[v],
        )
        payment = st.selectbox("Payment", list(PaymentTiming), format_func=lambda p: p.label)
        order_note = st.text_area("Note", height=70, key="order_note")

        selection = OrderSelection(
            customer_id=customer_id or None,
            item_kind=kind,
            item_id=item_id or None,
            time_slots=slots,
            start_date=start,
            end_date=end,
            duration_mode=mode,
            duration_value=int(duration_value) if duration_value else None,
            days_of_week=days,
            payment_timing=payment,
            note=order_note or None,
        )

    with col2:
        st.subheader("Calculation")
        with st.container(border=True):
            result = state.orders.quote(selection)
            if result is None:
                st.info("Select an item and a valid date range to see pricing.")
            else:
                st.write(f"Broadcast days: **{result.total_days}**")
                st.write(f"Times per day: **{result.times_per_day}**")
                st.write(f"Campaign length: **{result.campaign_months:.2f} months**")
                st.write(f"Base total: **{format_money(result.base_total)} ฿**")
                st.write(f"Condition discount: **{result.condition_discount_percent}%**")
                if result.payment_discount_percent:
                    st.write(f"Prepayment discount: **{result.payment_discount_percent}%**")
                st.write(f"Discount: **-{format_money(result.total_discount_amount)} ฿**")
                st.write(f"After discount: **{format_money(result.price_after_discount)} ฿**")
                st.write(f"VAT 7%: **{format_money(result.vat_amount)} ฿**")
                st.metric("Net total", f"{format_money(result.net_total)} ฿")
                with st.expander("🔍 Calculation trace"):
                    st.text(result.get_trace_text())

            if st.button("➕ Add order", type="primary", use_container_width=True, disabled=result is None):
                try:
                    state.orders.place_order(selection)
                    autosave()
                    st.rerun()
                except ValueError as e:
                    st.warning(str(e))

    st.divider()
    totals = state.orders.campaign_totals()
    m1, m2, m3 = st.columns(3)
    m1.metric("Campaign base", f"{format_money(totals.base)} ฿")
    m2.metric("Campaign discount", f"{format_money(totals.discount)} ฿")
    m3.metric("Campaign net", f"{format_money(totals.net)} ฿")

    if state.data.orders:
        st.dataframe(pd.DataFrame([{
            'ID': o.id, 'Customer': o.customer_id, 'Item': o.item_name,
            'Window': f"{o.start_date} → {o.end_date}", 'Days': o.pricing.total_days,
            'Times/Day': o.pricing.times_per_day, 'Net': format_money(o.pricing.net_total),
        } for o in state.data.orders]), use_container_width=True, hide_index=True)

        to_delete = st.selectbox("Delete order", [""] + [o.id for o in state.data.orders], key="del_order")
        if to_delete and st.button("Delete", key="del_order_btn"):
            state.orders.delete_order(to_delete)
            autosave()
            st.rerun()

        with st.expander("📊 Totals by customer"):
            st.dataframe(state.orders.customer_rollup(), use_container_width=True, hide_index=True)


# ============================================================================
# TAB 5: QUOTATION
# ============================================================================
with tab5:
    q1, q2, q3 = st.columns(3)
    quote_customer = q1.selectbox(
        "Customer", [""] + [c.id for c in state.data.customers], key="quote_customer",
        format_func=lambda cid: "-- select --" if not cid else next(
            c.company for c in state.data.customers if c.id == cid),
    )
    staff_name = q2.text_input("Prepared by", value=settings.default_staff_name)
    staff_phone = q3.text_input("Sales phone", value=settings.default_staff_phone)

    if quote_customer:
        quotation = state.quotations.build(quote_customer, staff_name, staff_phone)
        st.code(quotation.to_text(), language=None)
        st.dataframe(quotation.to_dataframe(), use_container_width=True, hide_index=True)

        b1, b2 = st.columns(2)
        with b1:
            st.download_button(
                "📥 CSV",
                data=quotation.to_dataframe().to_csv(index=False),
                file_name=f"quotation_{quote_customer}.csv",
                mime="text/csv",
                use_container_width=True,
            )
        with b2:
            buffer = io.BytesIO()
            quotation.to_dataframe().to_excel(buffer, index=False, sheet_name='Quotation')
            st.download_button(
                "📥 Excel",
                data=buffer.getvalue(),
                file_name=f"quotation_{quote_customer}.xlsx",
                mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
                use_container_width=True,
            )
    else:
        st.info("Select a customer to prepare a quotation.")
