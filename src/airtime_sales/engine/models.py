"""
Data models for the pricing engine.

Uses dataclasses for structured, type-safe data representation.
Monetary values are Decimal end to end; nothing is rounded until display.
"""
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional, Union


Number = Union[Decimal, int, float, str]

DEFAULT_WEEKDAYS = frozenset({1, 2, 3, 4, 5})  # Mon-Fri


def to_decimal(value: Number) -> Decimal:
    """Convert a user-facing number to Decimal without float artefacts."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def parse_labelled(enum_cls, value, labels: dict):
    """Resolve an enum member from its value, name or display label."""
    if isinstance(value, enum_cls):
        return value
    text = str(value).strip()
    for member in enum_cls:
        if text in (member.value, member.name, labels.get(member)):
            return member
    raise ValueError(f"Unknown {enum_cls.__name__}: {value!r}")


class CustomerCategory(str, Enum):
    """Organisation type of a customer; drives the condition discount."""
    PRIVATE = "private"
    GOVERNMENT = "government"
    STATE_ENTERPRISE = "state_enterprise"

    @property
    def label(self) -> str:
        return CATEGORY_LABELS[self]

    @classmethod
    def parse(cls, value) -> 'CustomerCategory':
        return parse_labelled(cls, value, CATEGORY_LABELS)


class PaymentTiming(str, Enum):
    """When the customer pays relative to the airing."""
    AFTER_AIRING = "after_airing"
    BEFORE_AIRING = "before_airing"

    @property
    def label(self) -> str:
        return PAYMENT_LABELS[self]

    @classmethod
    def parse(cls, value) -> 'PaymentTiming':
        return parse_labelled(cls, value, PAYMENT_LABELS)


CATEGORY_LABELS = {
    CustomerCategory.PRIVATE: "เอกชน",
    CustomerCategory.GOVERNMENT: "ราชการ",
    CustomerCategory.STATE_ENTERPRISE: "รัฐวิสาหกิจ",
}

PAYMENT_LABELS = {
    PaymentTiming.AFTER_AIRING: "หลังออกอากาศ",
    PaymentTiming.BEFORE_AIRING: "ก่อนออกอากาศ",
}


@dataclass
class TraceStep:
    """A single step in the pricing resolution trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass(frozen=True)
class PricingInput:
    """Snapshot of the order-entry fields the engine prices."""
    unit_price: Optional[Decimal]
    start_date: Optional[date]
    end_date: Optional[date]
    slot_count: int = 0
    active_weekdays: frozenset = DEFAULT_WEEKDAYS
    customer_category: CustomerCategory = CustomerCategory.PRIVATE
    payment_timing: PaymentTiming = PaymentTiming.AFTER_AIRING

    def __post_init__(self):
        if self.unit_price is not None:
            object.__setattr__(self, 'unit_price', to_decimal(self.unit_price))
        object.__setattr__(self, 'active_weekdays', frozenset(self.active_weekdays))
        object.__setattr__(self, 'customer_category', CustomerCategory.parse(self.customer_category))
        object.__setattr__(self, 'payment_timing', PaymentTiming.parse(self.payment_timing))


@dataclass
class PricingResult:
    """Complete result of a pricing calculation, stored verbatim on the order."""
    total_days: int
    times_per_day: int
    base_total: Decimal
    condition_discount_percent: int
    payment_discount_percent: int
    condition_discount_amount: Decimal
    payment_discount_amount: Decimal
    total_discount_amount: Decimal
    price_after_discount: Decimal
    vat_amount: Decimal
    net_total: Decimal
    campaign_months: Decimal
    trace: list[TraceStep] = field(default_factory=list, compare=False, repr=False)

    DECIMAL_FIELDS = (
        'base_total', 'condition_discount_amount', 'payment_discount_amount',
        'total_discount_amount', 'price_after_discount', 'vat_amount',
        'net_total', 'campaign_months',
    )
    INT_FIELDS = (
        'total_days', 'times_per_day', 'condition_discount_percent',
        'payment_discount_percent',
    )

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the result-level trace."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    def get_trace_text(self) -> str:
        """Get human-readable result trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"• {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"• {t.step}: {t.description}")
        return "\n".join(lines)

    def to_dict(self) -> dict:
        """Serialise to a flat dict; decimals become strings so nothing is lost."""
        data = {name: getattr(self, name) for name in self.INT_FIELDS}
        data.update({name: str(getattr(self, name)) for name in self.DECIMAL_FIELDS})
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'PricingResult':
        """Rebuild a stored result exactly as it was persisted."""
        kwargs = {name: int(data[name]) for name in cls.INT_FIELDS}
        kwargs.update({name: to_decimal(data[name]) for name in cls.DECIMAL_FIELDS})
        return cls(**kwargs)
