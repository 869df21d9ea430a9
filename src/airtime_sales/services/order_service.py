"""
Order Service - Order entry, pricing preview and campaign rollups.

The pricing result is computed once when an order is placed and stored
on the order; rollups only ever sum stored values.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional

import pandas as pd

from ..engine import PricingEngine, PricingInput, PricingResult
from ..engine.dates import DurationMode, resolve_end_date
from ..engine.models import CustomerCategory, PaymentTiming, DEFAULT_WEEKDAYS
from ..records.models import CatalogItem, ItemKind, OrderItem, ProductType, SystemData, item_price
from ..records.schedule import ALL_TIME_SLOTS
from .records_service import generate_id


logger = logging.getLogger(__name__)


@dataclass
class OrderSelection:
    """The order-entry form as currently filled in."""
    customer_id: Optional[str] = None
    item_kind: ItemKind = ItemKind.PRODUCE
    item_id: Optional[str] = None
    time_slots: list[str] = field(default_factory=list)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    duration_mode: DurationMode = DurationMode.DATE
    duration_value: Optional[int] = None
    days_of_week: list[int] = field(default_factory=lambda: sorted(DEFAULT_WEEKDAYS))
    payment_timing: PaymentTiming = PaymentTiming.AFTER_AIRING
    note: Optional[str] = None


@dataclass
class CampaignTotals:
    """Summed stored totals over a set of orders."""
    base: Decimal = Decimal(0)
    discount: Decimal = Decimal(0)
    net: Decimal = Decimal(0)
    orders: int = 0


class OrderService:
    """Service for creating, listing and summing orders."""

    def __init__(self, data: SystemData, engine: Optional[PricingEngine] = None):
        self.data = data
        self.engine = engine or PricingEngine()

    def available_items(self, kind: ItemKind) -> list[CatalogItem]:
        """Catalog items selectable for an order kind."""
        kind = ItemKind(kind)
        if kind == ItemKind.PRODUCE:
            return [p for p in self.data.products if p.type != ProductType.PRODUCTION]
        if kind == ItemKind.PACKAGE:
            return list(self.data.packages)
        return [p for p in self.data.products if p.type == ProductType.PRODUCTION]

    def find_item(self, kind: ItemKind, item_id: Optional[str]) -> Optional[CatalogItem]:
        if not item_id:
            return None
        for item in self.available_items(kind):
            if item.id == item_id:
                return item
        return None

    def customer_category(self, customer_id: Optional[str]) -> CustomerCategory:
        """Category of the selected customer; PRIVATE until one is chosen."""
        for customer in self.data.customers:
            if customer.id == customer_id:
                return customer.type
        return CustomerCategory.PRIVATE

    def resolve_window(self, selection: OrderSelection) -> tuple[Optional[date], Optional[date]]:
        end_date = resolve_end_date(
            selection.start_date,
            selection.duration_mode,
            selection.duration_value,
            selection.end_date,
        )
        return selection.start_date, end_date

    def build_pricing_input(self, selection: OrderSelection) -> PricingInput:
        """Translate the form state into an engine input."""
        item = self.find_item(selection.item_kind, selection.item_id)
        start_date, end_date = self.resolve_window(selection)
        return PricingInput(
            unit_price=item_price(item) if item is not None else None,
            start_date=start_date,
            end_date=end_date,
            slot_count=len(set(selection.time_slots)),
            active_weekdays=frozenset(selection.days_of_week),
            customer_category=self.customer_category(selection.customer_id),
            payment_timing=selection.payment_timing,
        )

    def quote(self, selection: OrderSelection) -> Optional[PricingResult]:
        """Price the current selection; None while it is not computable."""
        return self.engine.calculate(self.build_pricing_input(selection))

    def place_order(self, selection: OrderSelection) -> OrderItem:
        """Confirm the selection as an order with its pricing frozen."""
        if not selection.customer_id or not any(c.id == selection.customer_id for c in self.data.customers):
            raise ValueError("A valid customer must be selected")

        item = self.find_item(selection.item_kind, selection.item_id)
        if item is None:
            raise ValueError(f"No {ItemKind(selection.item_kind).value} item '{selection.item_id}' available")

        unknown_slots = [s for s in selection.time_slots if s not in ALL_TIME_SLOTS]
        if unknown_slots:
            raise ValueError(f"Unknown time slots: {', '.join(unknown_slots)}")

        bad_days = [d for d in selection.days_of_week if d not in range(7)]
        if bad_days:
            raise ValueError(f"Weekdays must be 0-6 (Sunday-Saturday), got {bad_days}")

        pricing_input = self.build_pricing_input(selection)
        pricing = self.engine.calculate(pricing_input)
        if pricing is None:
            raise ValueError(f"Order is not computable: {self.engine.not_computable_reason(pricing_input)}")

        order = OrderItem(
            id=generate_id("ORD", (o.id for o in self.data.orders)),
            customer_id=selection.customer_id,
            item_kind=ItemKind(selection.item_kind),
            item_id=item.id,
            item_name=item.name,
            unit_price=pricing_input.unit_price,
            time_slots=list(dict.fromkeys(selection.time_slots)),
            start_date=pricing_input.start_date,
            end_date=pricing_input.end_date,
            days_of_week=sorted(pricing_input.active_weekdays),
            payment_timing=pricing_input.payment_timing,
            pricing=pricing,
            note=selection.note,
        )
        self.data.orders.append(order)
        logger.info("Placed order %s for %s: %s net %s", order.id, order.customer_id,
                    order.item_name, pricing.net_total)
        return order

    def list_orders(self, customer_id: Optional[str] = None) -> list[OrderItem]:
        if customer_id is None:
            return list(self.data.orders)
        return [o for o in self.data.orders if o.customer_id == customer_id]

    def get_order(self, order_id: str) -> Optional[OrderItem]:
        for order in self.data.orders:
            if order.id == order_id:
                return order
        return None

    def delete_order(self, order_id: str) -> bool:
        order = self.get_order(order_id)
        if order is None:
            raise ValueError(f"Order with ID '{order_id}' not found")
        self.data.orders.remove(order)
        return True

    def campaign_totals(self, customer_id: Optional[str] = None) -> CampaignTotals:
        """Sum stored base, discount and net totals."""
        totals = CampaignTotals()
        for order in self.list_orders(customer_id):
            totals.base += order.pricing.base_total
            totals.discount += order.pricing.total_discount_amount
            totals.net += order.pricing.net_total
            totals.orders += 1
        return totals

    def customer_rollup(self) -> pd.DataFrame:
        """Per-customer sums of stored order totals."""
        columns = ['Customer ID', 'Company', 'Orders', 'Base Total', 'Discount', 'Net Total']
        if not self.data.orders:
            return pd.DataFrame(columns=columns)

        companies = {c.id: c.company for c in self.data.customers}
        df = pd.DataFrame([{
            'Customer ID': o.customer_id,
            'Base Total': o.pricing.base_total,
            'Discount': o.pricing.total_discount_amount,
            'Net Total': o.pricing.net_total,
        } for o in self.data.orders])

        rollup = df.groupby('Customer ID', sort=False).agg(
            Orders=('Net Total', 'size'),
            **{
                'Base Total': ('Base Total', lambda s: sum(s, Decimal(0))),
                'Discount': ('Discount', lambda s: sum(s, Decimal(0))),
                'Net Total': ('Net Total', lambda s: sum(s, Decimal(0))),
            },
        ).reset_index()
        rollup.insert(1, 'Company', rollup['Customer ID'].map(companies).fillna('(deleted)'))
        return rollup[columns]
