"""
Quotation Service - Builds and renders a customer's quotation.

Every figure comes from the pricing stored on the orders; nothing is
recalculated here. Amounts are rounded to satang only when rendered.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from pathlib import Path
from typing import Optional

import pandas as pd

from ..config.settings import Settings, get_settings
from ..records.models import Customer, OrderItem, SystemData


logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def money(value: Decimal) -> Decimal:
    """Round to two decimal places for display."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(value: Decimal) -> str:
    return f"{money(value):,.2f}"


@dataclass
class QuotationLine:
    item_name: str
    start_date: date
    end_date: date
    total_days: int
    times_per_day: int
    time_slots: list[str]
    base_total: Decimal
    condition_discount_percent: int
    payment_discount_percent: int
    total_discount_amount: Decimal
    price_after_discount: Decimal
    vat_amount: Decimal
    net_total: Decimal
    note: Optional[str] = None

    @classmethod
    def from_order(cls, order: OrderItem) -> 'QuotationLine':
        p = order.pricing
        return cls(
            item_name=order.item_name,
            start_date=order.start_date,
            end_date=order.end_date,
            total_days=p.total_days,
            times_per_day=p.times_per_day,
            time_slots=list(order.time_slots),
            base_total=p.base_total,
            condition_discount_percent=p.condition_discount_percent,
            payment_discount_percent=p.payment_discount_percent,
            total_discount_amount=p.total_discount_amount,
            price_after_discount=p.price_after_discount,
            vat_amount=p.vat_amount,
            net_total=p.net_total,
            note=order.note,
        )


@dataclass
class Quotation:
    """A rendered-ready quotation for one customer."""
    customer: Customer
    station_name: str
    station_frequency: str
    staff_name: str
    staff_phone: str
    issued: date
    lines: list[QuotationLine] = field(default_factory=list)

    @property
    def before_vat(self) -> Decimal:
        return sum((line.price_after_discount for line in self.lines), Decimal(0))

    @property
    def vat(self) -> Decimal:
        return sum((line.vat_amount for line in self.lines), Decimal(0))

    @property
    def total(self) -> Decimal:
        return sum((line.net_total for line in self.lines), Decimal(0))

    def to_dataframe(self) -> pd.DataFrame:
        """One row per order line, amounts rounded for display."""
        return pd.DataFrame([{
            'Item': line.item_name,
            'Start': line.start_date.isoformat(),
            'End': line.end_date.isoformat(),
            'Days': line.total_days,
            'Times/Day': line.times_per_day,
            'Base Total': float(money(line.base_total)),
            'Discount %': f"{line.condition_discount_percent}+{line.payment_discount_percent}",
            'Discount': float(money(line.total_discount_amount)),
            'After Discount': float(money(line.price_after_discount)),
            'VAT': float(money(line.vat_amount)),
            'Net Total': float(money(line.net_total)),
        } for line in self.lines], columns=[
            'Item', 'Start', 'End', 'Days', 'Times/Day', 'Base Total', 'Discount %',
            'Discount', 'After Discount', 'VAT', 'Net Total',
        ])

    def to_dict(self) -> dict:
        return {
            'customer': self.customer.to_dict(),
            'station_name': self.station_name,
            'station_frequency': self.station_frequency,
            'staff_name': self.staff_name,
            'staff_phone': self.staff_phone,
            'issued': self.issued.isoformat(),
            'lines': [{
                'item_name': line.item_name,
                'start_date': line.start_date.isoformat(),
                'end_date': line.end_date.isoformat(),
                'total_days': line.total_days,
                'times_per_day': line.times_per_day,
                'time_slots': line.time_slots,
                'base_total': str(line.base_total),
                'condition_discount_percent': line.condition_discount_percent,
                'payment_discount_percent': line.payment_discount_percent,
                'total_discount_amount': str(line.total_discount_amount),
                'price_after_discount': str(line.price_after_discount),
                'vat_amount': str(line.vat_amount),
                'net_total': str(line.net_total),
                'note': line.note or '',
            } for line in self.lines],
            'totals': {
                'before_vat': str(self.before_vat),
                'vat': str(self.vat),
                'total': str(self.total),
            },
        }

    def to_text(self) -> str:
        """Printable plain-text quotation."""
        c = self.customer
        rows = [
            f"{self.station_name} {self.station_frequency}",
            "ใบเสนอราคา / QUOTATION",
            f"Date: {self.issued.isoformat()}",
            "",
            f"Customer: {c.company} ({c.type.label})",
            f"Attention: {c.name}" + (f", {c.position}" if c.position else ""),
            f"Phone: {c.phone}" + (f"  Email: {c.email}" if c.email else ""),
        ]
        if c.address:
            rows.append(f"Address: {c.address}")
        rows.append("")

        if not self.lines:
            rows.append("No orders for this customer.")
        for number, line in enumerate(self.lines, start=1):
            rows.append(f"{number}. {line.item_name}")
            rows.append(f"   {line.start_date.isoformat()} - {line.end_date.isoformat()} | "
                        f"{line.total_days} days × {line.times_per_day} times/day")
            if line.time_slots:
                rows.append(f"   Slots: {', '.join(line.time_slots)}")
            discount = f"{line.condition_discount_percent}%"
            if line.payment_discount_percent:
                discount += f" + {line.payment_discount_percent}%"
            rows.append(f"   Base {format_money(line.base_total)} | Discount {discount} "
                        f"(-{format_money(line.total_discount_amount)}) | Net {format_money(line.net_total)}")
            if line.note:
                rows.append(f"   Note: {line.note}")

        rows.extend([
            "",
            f"Total before VAT: {format_money(self.before_vat)} THB",
            f"VAT 7%:           {format_money(self.vat)} THB",
            f"Grand total:      {format_money(self.total)} THB",
            "",
            f"Contact: {self.staff_name} {self.staff_phone}",
        ])
        return "\n".join(rows)

    def export(self, path: Path) -> Path:
        """Write the line table as .csv or .xlsx depending on the suffix."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        df = self.to_dataframe()
        if path.suffix.lower() == '.xlsx':
            df.to_excel(path, index=False, sheet_name='Quotation')
        elif path.suffix.lower() == '.csv':
            df.to_csv(path, index=False)
        else:
            raise ValueError(f"Unsupported export format: {path.suffix or '(none)'}")
        logger.info("Exported quotation for %s to %s", self.customer.id, path)
        return path


class QuotationService:
    """Builds quotations from stored orders."""

    def __init__(self, data: SystemData, settings: Optional[Settings] = None):
        self.data = data
        self.settings = settings or get_settings()

    def build(
        self,
        customer_id: str,
        staff_name: Optional[str] = None,
        staff_phone: Optional[str] = None,
        issued: Optional[date] = None,
    ) -> Quotation:
        """Assemble a quotation for all of a customer's orders."""
        customer = next((c for c in self.data.customers if c.id == customer_id), None)
        if customer is None:
            raise ValueError(f"Customer with ID '{customer_id}' not found")

        orders = [o for o in self.data.orders if o.customer_id == customer_id]
        return Quotation(
            customer=customer,
            station_name=self.settings.station_name,
            station_frequency=self.settings.station_frequency,
            staff_name=staff_name or self.settings.default_staff_name,
            staff_phone=staff_phone or self.settings.default_staff_phone,
            issued=issued or date.today(),
            lines=[QuotationLine.from_order(o) for o in orders],
        )
