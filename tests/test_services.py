"""
Tests for records, orders, quotation and storage services.
"""
import json
import os
import sys
from datetime import date
from decimal import Decimal

import pandas as pd
import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from airtime_sales.config.settings import Settings
from airtime_sales.engine.dates import DurationMode
from airtime_sales.engine.models import CustomerCategory, PaymentTiming
from airtime_sales.records.models import Customer, ItemKind, Product, ProductType, SystemData
from airtime_sales.services.app_state import AppState
from airtime_sales.services.order_service import OrderSelection, OrderService
from airtime_sales.services.quotation_service import QuotationService
from airtime_sales.services.records_service import RecordsService
from airtime_sales.services.storage_service import SnapshotError, StorageService


@pytest.fixture
def data():
    return SystemData.empty()


@pytest.fixture
def records(data):
    return RecordsService(data)


@pytest.fixture
def orders(data):
    return OrderService(data)


@pytest.fixture
def catalog(records):
    """Two customers, three products and one package."""
    private = records.create_customer(Customer(company="Acme Co", name="Somchai", phone="081"))
    government = records.create_customer(Customer(
        company="City Hall", name="Suda", phone="055", type=CustomerCategory.GOVERNMENT,
    ))
    spot = records.create_product(Product(name="30s spot", price=Decimal("1250")))
    banner = records.create_product(Product(name="Web banner", price=Decimal("500"), type=ProductType.ONLINE))
    jingle = records.create_product(Product(name="Jingle", price=Decimal("8000"), type=ProductType.PRODUCTION))
    package = records.create_package("Spot + Banner", [spot.id, banner.id])
    return {
        'private': private, 'government': government, 'spot': spot,
        'banner': banner, 'jingle': jingle, 'package': package,
    }


@pytest.fixture
def settings(tmp_path):
    return Settings(project_root=tmp_path, data_file=tmp_path / "data.json", export_dir=tmp_path / "exports")


# ----------------------------------------------------------------------
# Records
# ----------------------------------------------------------------------

def test_customer_required_fields(records):
    with pytest.raises(ValueError, match="Phone is required"):
        records.create_customer(Customer(company="Acme", name="A", phone=""))
    assert records.list_customers() == []


def test_customer_ids_unique(records):
    first = records.create_customer(Customer(company="A", name="a", phone="1"))
    second = records.create_customer(Customer(company="B", name="b", phone="2"))
    assert first.id.startswith("CUST-")
    assert first.id != second.id


def test_duplicate_company_warns(records, catalog):
    result = records.validate_customer(Customer(company="acme co", name="x", phone="1"))
    assert result.valid
    assert any("already exists" in w for w in result.warnings)


def test_search_customers(records, catalog):
    assert [c.company for c in records.search_customers("ACME")] == ["Acme Co"]
    assert [c.company for c in records.search_customers("suda")] == ["City Hall"]
    assert len(records.search_customers("")) == 2


def test_update_customer(records, catalog):
    updated = records.update_customer(catalog['private'].id, {'type': 'state_enterprise', 'email': 'a@b.c'})
    assert updated.type == CustomerCategory.STATE_ENTERPRISE
    assert records.get_customer(catalog['private'].id).email == 'a@b.c'
    with pytest.raises(ValueError):
        records.update_customer(catalog['private'].id, {'company': ''})
    with pytest.raises(ValueError):
        records.update_customer("CUST-missing", {'email': 'x'})


def test_delete_customer(records, catalog):
    assert records.delete_customer(catalog['private'].id)
    assert records.get_customer(catalog['private'].id) is None
    with pytest.raises(ValueError):
        records.delete_customer(catalog['private'].id)


def test_product_validation(records):
    with pytest.raises(ValueError, match="Name is required"):
        records.create_product(Product(name="", price=100))
    with pytest.raises(ValueError, match="negative"):
        records.create_product(Product(name="x", price=-1))


def test_package_price_is_sum_of_products(catalog):
    package = catalog['package']
    assert package.total_price == Decimal("1750")
    assert [p.name for p in package.products] == ["30s spot", "Web banner"]


def test_package_requires_products(records, catalog):
    with pytest.raises(ValueError):
        records.create_package("Empty", [])
    with pytest.raises(ValueError):
        records.create_package("Bad", ["PROD-missing"])


def test_group_products_by_type(records, catalog):
    groups = records.group_products_by_type()
    assert [p.name for p in groups[ProductType.ON_AIR]] == ["30s spot"]
    assert [p.name for p in groups[ProductType.PRODUCTION]] == ["Jingle"]


# ----------------------------------------------------------------------
# Orders
# ----------------------------------------------------------------------

def test_available_items_by_kind(orders, catalog):
    assert {i.name for i in orders.available_items(ItemKind.PRODUCE)} == {"30s spot", "Web banner"}
    assert [i.name for i in orders.available_items(ItemKind.PACKAGE)] == ["Spot + Banner"]
    assert [i.name for i in orders.available_items(ItemKind.PRODUCTION)] == ["Jingle"]


def test_quote_not_computable_without_item(orders, catalog):
    selection = OrderSelection(customer_id=catalog['private'].id, start_date=date(2024, 1, 1),
                               end_date=date(2024, 1, 31))
    assert orders.quote(selection) is None


def test_quote_unknown_customer_priced_as_private(orders, catalog):
    selection = OrderSelection(item_id=catalog['spot'].id, start_date=date(2024, 1, 1),
                               end_date=date(2024, 3, 30), days_of_week=list(range(7)))
    assert orders.quote(selection).condition_discount_percent == 25


def test_quote_uses_customer_category(orders, catalog):
    selection = OrderSelection(customer_id=catalog['government'].id, item_id=catalog['spot'].id,
                               start_date=date(2024, 1, 1), end_date=date(2024, 1, 5))
    assert orders.quote(selection).condition_discount_percent == 40


def test_duplicate_slots_count_once(orders, catalog):
    selection = OrderSelection(item_id=catalog['spot'].id, start_date=date(2024, 1, 1),
                               end_date=date(2024, 1, 1), time_slots=["08:00-08:30", "08:00-08:30", "09:00-09:30"])
    assert orders.quote(selection).times_per_day == 2


def test_place_order_freezes_pricing(orders, catalog, data):
    selection = OrderSelection(
        customer_id=catalog['private'].id,
        item_id=catalog['spot'].id,
        start_date=date(2024, 1, 1),
        end_date=date(2024, 2, 29),
        days_of_week=[6],
        payment_timing=PaymentTiming.BEFORE_AIRING,
        time_slots=["08:00-08:30"],
    )
    order = orders.place_order(selection)
    assert order.id.startswith("ORD-")
    assert order.pricing.net_total == Decimal("8132")
    assert data.orders == [order]

    # Later price changes do not touch the stored order
    catalog['spot'].price = Decimal("99999")
    assert orders.get_order(order.id).pricing.net_total == Decimal("8132")


def test_place_order_with_month_shorthand(orders, catalog):
    selection = OrderSelection(
        customer_id=catalog['private'].id,
        item_kind=ItemKind.PACKAGE,
        item_id=catalog['package'].id,
        start_date=date(2024, 1, 1),
        duration_mode=DurationMode.MONTHS,
        duration_value=6,
    )
    order = orders.place_order(selection)
    assert order.end_date == date(2024, 6, 30)
    assert order.unit_price == Decimal("1750")
    # 182 inclusive days is more than six flat months
    assert order.pricing.condition_discount_percent == 30


def test_place_order_rejections(orders, catalog):
    base = dict(item_id=catalog['spot'].id, start_date=date(2024, 1, 1), end_date=date(2024, 1, 31))
    with pytest.raises(ValueError, match="customer"):
        orders.place_order(OrderSelection(**base))
    with pytest.raises(ValueError, match="not computable"):
        orders.place_order(OrderSelection(customer_id=catalog['private'].id, item_id=catalog['spot'].id,
                                          start_date=date(2024, 2, 1), end_date=date(2024, 1, 1)))
    with pytest.raises(ValueError, match="time slots"):
        orders.place_order(OrderSelection(customer_id=catalog['private'].id, time_slots=["03:00-03:30"], **base))
    with pytest.raises(ValueError, match="Weekdays"):
        orders.place_order(OrderSelection(customer_id=catalog['private'].id, days_of_week=[7], **base))
    with pytest.raises(ValueError):
        orders.place_order(OrderSelection(customer_id=catalog['private'].id, item_kind=ItemKind.PRODUCTION,
                                          item_id=catalog['spot'].id, start_date=date(2024, 1, 1),
                                          end_date=date(2024, 1, 31)))


def test_campaign_totals_sum_stored_values(orders, catalog):
    window = dict(start_date=date(2024, 1, 1), end_date=date(2024, 1, 7), days_of_week=list(range(7)))
    a = orders.place_order(OrderSelection(customer_id=catalog['private'].id, item_id=catalog['spot'].id, **window))
    b = orders.place_order(OrderSelection(customer_id=catalog['government'].id, item_id=catalog['banner'].id, **window))

    totals = orders.campaign_totals()
    assert totals.orders == 2
    assert totals.base == a.pricing.base_total + b.pricing.base_total
    assert totals.discount == a.pricing.total_discount_amount + b.pricing.total_discount_amount
    assert totals.net == a.pricing.net_total + b.pricing.net_total

    private_only = orders.campaign_totals(catalog['private'].id)
    assert private_only.orders == 1
    assert private_only.net == a.pricing.net_total


def test_customer_rollup(orders, catalog):
    assert orders.customer_rollup().empty
    window = dict(start_date=date(2024, 1, 1), end_date=date(2024, 1, 7))
    orders.place_order(OrderSelection(customer_id=catalog['private'].id, item_id=catalog['spot'].id, **window))
    orders.place_order(OrderSelection(customer_id=catalog['private'].id, item_id=catalog['banner'].id, **window))

    rollup = orders.customer_rollup()
    assert isinstance(rollup, pd.DataFrame)
    assert len(rollup) == 1
    row = rollup.iloc[0]
    assert row['Company'] == "Acme Co"
    assert row['Orders'] == 2
    # 5 weekdays × (1250 + 500), no discount, plus VAT
    assert row['Base Total'] == Decimal("8750")
    assert row['Net Total'] == Decimal("9362.50")


def test_delete_order(orders, catalog):
    order = orders.place_order(OrderSelection(customer_id=catalog['private'].id, item_id=catalog['spot'].id,
                                              start_date=date(2024, 1, 1), end_date=date(2024, 1, 2)))
    assert orders.delete_order(order.id)
    assert orders.list_orders() == []
    with pytest.raises(ValueError):
        orders.delete_order(order.id)


# ----------------------------------------------------------------------
# Quotation
# ----------------------------------------------------------------------

def test_quotation_totals_and_text(data, orders, catalog, settings, tmp_path):
    order = orders.place_order(OrderSelection(
        customer_id=catalog['private'].id, item_id=catalog['spot'].id,
        start_date=date(2024, 1, 1), end_date=date(2024, 2, 29), days_of_week=[6],
        payment_timing=PaymentTiming.BEFORE_AIRING, note="Free mention",
    ))
    quotation = QuotationService(data, settings).build(catalog['private'].id, issued=date(2024, 1, 1))

    assert quotation.before_vat == Decimal("7600")
    assert quotation.vat == Decimal("532")
    assert quotation.total == order.pricing.net_total
    assert quotation.staff_name == settings.default_staff_name

    text = quotation.to_text()
    assert "Acme Co" in text
    assert "8,132.00" in text
    assert "20% + 5%" in text
    assert "Free mention" in text

    df = quotation.to_dataframe()
    assert list(df['Net Total']) == [8132.0]

    csv_path = quotation.export(tmp_path / "q.csv")
    assert pd.read_csv(csv_path)['Net Total'].tolist() == [8132.0]
    xlsx_path = quotation.export(tmp_path / "q.xlsx")
    assert xlsx_path.exists()
    with pytest.raises(ValueError):
        quotation.export(tmp_path / "q.pdf")


def test_quotation_without_orders(data, catalog, settings):
    quotation = QuotationService(data, settings).build(catalog['government'].id, "Nok", "099")
    assert quotation.lines == []
    assert quotation.total == 0
    assert quotation.staff_name == "Nok"
    assert "No orders" in quotation.to_text()
    assert quotation.to_dataframe().empty


def test_quotation_unknown_customer(data, settings):
    with pytest.raises(ValueError):
        QuotationService(data, settings).build("CUST-missing")


# ----------------------------------------------------------------------
# Storage
# ----------------------------------------------------------------------

def test_storage_round_trip_keeps_pricing(data, orders, catalog, tmp_path):
    orders.place_order(OrderSelection(customer_id=catalog['private'].id, item_id=catalog['spot'].id,
                                      start_date=date(2024, 1, 1), end_date=date(2024, 2, 9)))
    storage = StorageService(tmp_path / "snap" / "data.json")
    assert storage.load() is None

    storage.save(data)
    assert data.settings.last_save is not None

    loaded = storage.load()
    assert loaded.orders[0].pricing == data.orders[0].pricing
    assert loaded.orders[0].pricing.campaign_months == data.orders[0].pricing.campaign_months
    assert loaded.packages[0].total_price == Decimal("1750")
    assert loaded.customers[1].type == CustomerCategory.GOVERNMENT

    assert storage.clear()
    assert storage.load() is None
    assert not storage.clear()


def test_storage_corrupt_file_loads_none(tmp_path):
    path = tmp_path / "data.json"
    path.write_text("{not json", encoding="utf-8")
    assert StorageService(path).load() is None


def test_export_and_import(data, catalog, tmp_path):
    storage = StorageService(tmp_path / "data.json")
    backup = storage.export_data(data, tmp_path / "exports", today=date(2024, 5, 1))
    assert backup.name == "MCOT_Backup_2024-05-01.json"

    imported = storage.import_data(backup)
    assert [c.company for c in imported.customers] == ["Acme Co", "City Hall"]

    bad = tmp_path / "bad.json"
    bad.write_text("[]", encoding="utf-8")
    with pytest.raises(SnapshotError, match="Invalid JSON file"):
        storage.import_data(bad)
    with pytest.raises(SnapshotError):
        storage.import_data(tmp_path / "missing.json")


def test_import_accepts_thai_labels(tmp_path):
    payload = {
        "customers": [{"id": "CUST-1", "company": "Gov", "type": "ราชการ", "name": "A",
                       "phone": "1", "email": "", "potential": "สูง", "created": "2024-01-01T00:00:00"}],
        "products": [{"id": "PROD-1", "type": "onAir", "name": "Spot", "price": 1000,
                      "promotion": "มี", "created": "2024-01-01T00:00:00"}],
        "packages": [],
        "orders": [],
        "settings": {"lastSave": None, "version": "4.0"},
    }
    data = StorageService(tmp_path / "d.json").parse(json.dumps(payload, ensure_ascii=False))
    assert data.customers[0].type == CustomerCategory.GOVERNMENT
    assert data.products[0].promotion is True
    assert data.products[0].price == Decimal("1000")


def test_app_state_replace_and_clear(settings):
    state = AppState(settings)
    state.records.create_customer(Customer(company="A", name="a", phone="1"))
    state.save()

    reloaded = AppState(settings)
    assert len(reloaded.data.customers) == 1

    reloaded.replace_data(SystemData.empty())
    assert reloaded.records.list_customers() == []
    assert reloaded.orders.data is reloaded.data

    reloaded.clear()
    assert not settings.data_file.exists()


def test_month_shorthand_rolls_over_short_month(orders, catalog):
    selection = OrderSelection(
        customer_id=catalog['private'].id,
        item_id=catalog['spot'].id,
        start_date=date(2024, 12, 31),
        duration_mode=DurationMode.MONTHS,
        duration_value=2,
        days_of_week=list(range(7)),
    )
    order = orders.place_order(selection)
    assert order.end_date == date(2025, 3, 2)
    assert order.pricing.total_days == 62
    assert order.pricing.condition_discount_percent == 20


def test_import_flat_camel_case_orders(tmp_path):
    """Backups from the earlier app keep amounts flat on each order."""
    payload = {
        "customers": [{"id": "CUST-1", "company": "Acme", "type": "เอกชน", "name": "A",
                       "phone": "1", "email": "", "potential": "กลาง", "created": "2024-01-01T00:00:00.000Z"}],
        "products": [{"id": "PROD-1", "type": "onAir", "name": "Spot", "price": 1250,
                      "promotion": "ไม่มี", "created": "2024-01-01T00:00:00.000Z"}],
        "packages": [{"id": "PKG-1", "name": "Bundle", "totalPrice": 1250, "created": "2024-01-01T00:00:00.000Z",
                      "products": [{"id": "PROD-1", "type": "onAir", "name": "Spot", "price": 1250,
                                    "promotion": "ไม่มี", "created": "2024-01-01T00:00:00.000Z"}]}],
        "orders": [{
            "id": "ORD-1", "customerId": "CUST-1", "productType": "Produce", "productId": "PROD-1",
            "productName": "Spot", "unitPrice": 1250, "timeSlots": ["08:00-08:30"],
            "startDate": "2024-01-01", "endDate": "2024-02-29", "daysOfWeek": [6],
            "timesPerDay": 1, "totalDays": 8, "totalPrice": 10000,
            "conditionDiscountPercent": 20, "paymentDiscountPercent": 5,
            "totalDiscountAmount": 2400, "priceAfterDiscount": 7600, "vatAmount": 532,
            "netTotal": 8132, "paymentType": "ก่อนออกอากาศ", "note": "",
            "created": "2024-01-01T00:00:00.000Z",
        }],
        "settings": {"lastSave": "2024-01-02T00:00:00.000Z", "version": "4.0"},
    }
    data = StorageService(tmp_path / "d.json").parse(json.dumps(payload, ensure_ascii=False))

    order = data.orders[0]
    assert order.customer_id == "CUST-1"
    assert order.item_kind == ItemKind.PRODUCE
    assert order.payment_timing == PaymentTiming.BEFORE_AIRING
    assert order.days_of_week == [6]
    assert order.pricing.base_total == Decimal("10000")
    assert order.pricing.condition_discount_amount == Decimal("2000")
    assert order.pricing.payment_discount_amount == Decimal("400")
    assert order.pricing.net_total == Decimal("8132")
    assert order.pricing.campaign_months == Decimal(2)
    assert data.settings.last_save == "2024-01-02T00:00:00.000Z"

    # Saved again in the current layout and read back unchanged
    again = StorageService(tmp_path / "d.json").parse(json.dumps(data.to_dict()))
    assert again.orders[0].pricing == order.pricing


def test_stored_legacy_totals_are_not_recomputed(tmp_path):
    payload = {"orders": [{
        "id": "ORD-1", "customerId": "CUST-1", "productType": "Package", "productId": "PKG-1",
        "productName": "Bundle", "unitPrice": 1000, "startDate": "2024-01-01", "endDate": "2024-01-07",
        "daysOfWeek": [1, 2, 3, 4, 5], "timesPerDay": 1, "totalDays": 5, "totalPrice": 4999,
        "conditionDiscountPercent": 0, "paymentDiscountPercent": 0, "totalDiscountAmount": 0,
        "priceAfterDiscount": 4999, "vatAmount": 349.93, "netTotal": 5348.93, "paymentType": "หลังออกอากาศ",
    }]}
    order = StorageService(tmp_path / "d.json").parse(payload).orders[0]
    assert order.pricing.base_total == Decimal("4999")
    assert order.pricing.net_total == Decimal("5348.93")


# ----------------------------------------------------------------------
# Autosave
# ----------------------------------------------------------------------

def test_change_after_recent_save_is_flushed_later(settings):
    """A change made soon after a save is held, then written once the interval passes."""
    state = AppState(settings)
    state.records.create_customer(Customer(company="A", name="a", phone="1"))
    state.mark_dirty()
    state.save()
    saved_at = state.last_flush

    state.records.create_customer(Customer(company="B", name="b", phone="2"))
    state.mark_dirty()
    assert not state.flush_if_due(now=saved_at + 10)
    assert state.dirty
    assert len(AppState(settings).data.customers) == 1

    assert state.flush_if_due(now=saved_at + settings.autosave_seconds)
    assert not state.dirty
    assert len(AppState(settings).data.customers) == 2


def test_flush_skips_when_nothing_changed(settings):
    state = AppState(settings)
    assert not state.flush_if_due(now=state.last_flush + 3600)
    assert not settings.data_file.exists()
