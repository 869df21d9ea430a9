"""
Record types kept in the application snapshot.

Each record converts to and from the flat dict stored in the JSON
snapshot. Enum fields also accept the Thai display labels used by
older backups.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from ..engine.dates import campaign_months
from ..engine.models import (
    CustomerCategory,
    PaymentTiming,
    PricingResult,
    parse_labelled,
    to_decimal,
)


def now_iso() -> str:
    return datetime.now().isoformat(timespec='seconds')


class PotentialLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def label(self) -> str:
        return POTENTIAL_LABELS[self]

    @classmethod
    def parse(cls, value) -> 'PotentialLevel':
        return parse_labelled(cls, value, POTENTIAL_LABELS)


class ProductType(str, Enum):
    ON_AIR = "onAir"
    ONLINE = "online"
    PRODUCTION = "production"

    @property
    def label(self) -> str:
        return PRODUCT_TYPE_LABELS[self]

    @classmethod
    def parse(cls, value) -> 'ProductType':
        return parse_labelled(cls, value, PRODUCT_TYPE_LABELS)


class ItemKind(str, Enum):
    """What an order line sells."""
    PRODUCE = "Produce"
    PACKAGE = "Package"
    PRODUCTION = "Production"


POTENTIAL_LABELS = {
    PotentialLevel.HIGH: "สูง",
    PotentialLevel.MEDIUM: "กลาง",
    PotentialLevel.LOW: "ต่ำ",
}

PRODUCT_TYPE_LABELS = {
    ProductType.ON_AIR: "On Air",
    ProductType.ONLINE: "Online",
    ProductType.PRODUCTION: "Production",
}


@dataclass
class Customer:
    """An advertiser."""
    company: str
    name: str
    phone: str
    type: CustomerCategory = CustomerCategory.PRIVATE
    id: str = ""
    category: Optional[str] = None
    address: Optional[str] = None
    position: Optional[str] = None
    email: str = ""
    potential: PotentialLevel = PotentialLevel.MEDIUM
    note: Optional[str] = None
    created: str = field(default_factory=now_iso)

    def __post_init__(self):
        self.type = CustomerCategory.parse(self.type)
        self.potential = PotentialLevel.parse(self.potential)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'company': self.company,
            'type': self.type.value,
            'category': self.category or '',
            'address': self.address or '',
            'name': self.name,
            'position': self.position or '',
            'phone': self.phone,
            'email': self.email,
            'potential': self.potential.value,
            'note': self.note or '',
            'created': self.created,
        }

    @classmethod
    def from_dict(cls, row: dict) -> 'Customer':
        return cls(
            id=row.get('id', ''),
            company=row.get('company', ''),
            type=row.get('type') or CustomerCategory.PRIVATE,
            category=row.get('category') or None,
            address=row.get('address') or None,
            name=row.get('name', ''),
            position=row.get('position') or None,
            phone=row.get('phone', ''),
            email=row.get('email', ''),
            potential=row.get('potential') or PotentialLevel.MEDIUM,
            note=row.get('note') or None,
            created=row.get('created') or now_iso(),
        )


@dataclass
class Product:
    """A sellable airtime, online or production item."""
    name: str
    price: Decimal
    type: ProductType = ProductType.ON_AIR
    id: str = ""
    promotion: bool = False
    promotion_detail: Optional[str] = None
    note: Optional[str] = None
    created: str = field(default_factory=now_iso)

    def __post_init__(self):
        self.price = to_decimal(self.price)
        self.type = ProductType.parse(self.type)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'type': self.type.value,
            'name': self.name,
            'price': str(self.price),
            'promotion': self.promotion,
            'promotion_detail': self.promotion_detail or '',
            'note': self.note or '',
            'created': self.created,
        }

    @classmethod
    def from_dict(cls, row: dict) -> 'Product':
        promotion = row.get('promotion', False)
        if isinstance(promotion, str):
            promotion = promotion.strip().lower() in ('มี', 'true', 'yes')
        return cls(
            id=row.get('id', ''),
            type=row.get('type') or ProductType.ON_AIR,
            name=row.get('name', ''),
            price=row.get('price', 0),
            promotion=bool(promotion),
            promotion_detail=row.get('promotion_detail') or row.get('promotionDetail') or None,
            note=row.get('note') or None,
            created=row.get('created') or now_iso(),
        )


@dataclass
class Package:
    """A bundle of products sold at the sum of their prices."""
    name: str
    products: list[Product]
    id: str = ""
    total_price: Optional[Decimal] = None
    note: Optional[str] = None
    created: str = field(default_factory=now_iso)

    def __post_init__(self):
        if self.total_price is None:
            self.total_price = sum((p.price for p in self.products), Decimal(0))
        else:
            self.total_price = to_decimal(self.total_price)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'products': [p.to_dict() for p in self.products],
            'total_price': str(self.total_price),
            'note': self.note or '',
            'created': self.created,
        }

    @classmethod
    def from_dict(cls, row: dict) -> 'Package':
        total = row.get('total_price', row.get('totalPrice'))
        return cls(
            id=row.get('id', ''),
            name=row.get('name', ''),
            products=[Product.from_dict(p) for p in row.get('products', [])],
            total_price=total,
            note=row.get('note') or None,
            created=row.get('created') or now_iso(),
        )


CatalogItem = Union[Product, Package]


def item_price(item: CatalogItem) -> Decimal:
    """Unit price of a product or package."""
    if isinstance(item, Package):
        return item.total_price
    return item.price


@dataclass
class OrderItem:
    """A confirmed order line with its pricing frozen at creation."""
    customer_id: str
    item_kind: ItemKind
    item_id: str
    item_name: str
    unit_price: Decimal
    start_date: date
    end_date: date
    days_of_week: list[int]
    payment_timing: PaymentTiming
    pricing: PricingResult
    time_slots: list[str] = field(default_factory=list)
    id: str = ""
    note: Optional[str] = None
    created: str = field(default_factory=now_iso)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'customer_id': self.customer_id,
            'item_kind': self.item_kind.value,
            'item_id': self.item_id,
            'item_name': self.item_name,
            'unit_price': str(self.unit_price),
            'time_slots': list(self.time_slots),
            'start_date': self.start_date.isoformat(),
            'end_date': self.end_date.isoformat(),
            'days_of_week': sorted(self.days_of_week),
            'payment_timing': self.payment_timing.value,
            'pricing': self.pricing.to_dict(),
            'note': self.note or '',
            'created': self.created,
        }

    @classmethod
    def from_dict(cls, row: dict) -> 'OrderItem':
        if 'pricing' not in row and 'customerId' in row:
            return cls.from_legacy_dict(row)
        return cls(
            id=row.get('id', ''),
            customer_id=row['customer_id'],
            item_kind=ItemKind(row['item_kind']),
            item_id=row['item_id'],
            item_name=row.get('item_name', ''),
            unit_price=to_decimal(row['unit_price']),
            time_slots=list(row.get('time_slots', [])),
            start_date=date.fromisoformat(row['start_date']),
            end_date=date.fromisoformat(row['end_date']),
            days_of_week=[int(d) for d in row.get('days_of_week', [])],
            payment_timing=PaymentTiming.parse(row['payment_timing']),
            pricing=PricingResult.from_dict(row['pricing']),
            note=row.get('note') or None,
            created=row.get('created') or now_iso(),
        )

    @classmethod
    def from_legacy_dict(cls, row: dict) -> 'OrderItem':
        """
        Read an order from an older backup, where the amounts sit flat on
        the order in camelCase and `totalPrice` is the pre-discount total.

        Stored amounts are taken as they are. Only the split of the total
        discount and the campaign length, which older backups never kept,
        are derived from the stored figures.
        """
        start_date = date.fromisoformat(row['startDate'][:10])
        end_date = date.fromisoformat(row['endDate'][:10])
        base_total = to_decimal(row['totalPrice'])
        condition_percent = int(row.get('conditionDiscountPercent', 0))
        total_discount = to_decimal(row.get('totalDiscountAmount', 0))
        condition_amount = base_total * condition_percent / 100
        pricing = PricingResult(
            total_days=int(row['totalDays']),
            times_per_day=int(row['timesPerDay']),
            base_total=base_total,
            condition_discount_percent=condition_percent,
            payment_discount_percent=int(row.get('paymentDiscountPercent', 0)),
            condition_discount_amount=condition_amount,
            payment_discount_amount=total_discount - condition_amount,
            total_discount_amount=total_discount,
            price_after_discount=to_decimal(row['priceAfterDiscount']),
            vat_amount=to_decimal(row['vatAmount']),
            net_total=to_decimal(row['netTotal']),
            campaign_months=campaign_months(start_date, end_date),
        )
        return cls(
            id=row.get('id', ''),
            customer_id=row['customerId'],
            item_kind=ItemKind(row['productType']),
            item_id=row['productId'],
            item_name=row.get('productName', ''),
            unit_price=to_decimal(row['unitPrice']),
            time_slots=list(row.get('timeSlots', [])),
            start_date=start_date,
            end_date=end_date,
            days_of_week=[int(d) for d in row.get('daysOfWeek', [])],
            payment_timing=PaymentTiming.parse(row['paymentType']),
            pricing=pricing,
            note=row.get('note') or None,
            created=row.get('created') or now_iso(),
        )


@dataclass
class SnapshotSettings:
    last_save: Optional[str] = None
    version: str = "4.0"


@dataclass
class SystemData:
    """The whole application state; passed explicitly to every service."""
    customers: list[Customer] = field(default_factory=list)
    products: list[Product] = field(default_factory=list)
    packages: list[Package] = field(default_factory=list)
    orders: list[OrderItem] = field(default_factory=list)
    settings: SnapshotSettings = field(default_factory=SnapshotSettings)

    @classmethod
    def empty(cls, version: str = "4.0") -> 'SystemData':
        return cls(settings=SnapshotSettings(version=version))

    def to_dict(self) -> dict:
        return {
            'customers': [c.to_dict() for c in self.customers],
            'products': [p.to_dict() for p in self.products],
            'packages': [p.to_dict() for p in self.packages],
            'orders': [o.to_dict() for o in self.orders],
            'settings': {
                'last_save': self.settings.last_save,
                'version': self.settings.version,
            },
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'SystemData':
        settings = data.get('settings') or {}
        return cls(
            customers=[Customer.from_dict(c) for c in data.get('customers', [])],
            products=[Product.from_dict(p) for p in data.get('products', [])],
            packages=[Package.from_dict(p) for p in data.get('packages', [])],
            orders=[OrderItem.from_dict(o) for o in data.get('orders', [])],
            settings=SnapshotSettings(
                last_save=settings.get('last_save') or settings.get('lastSave'),
                version=settings.get('version', "4.0"),
            ),
        )
