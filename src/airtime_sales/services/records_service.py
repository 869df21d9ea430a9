"""
Records Service - CRUD operations for customers, products and packages.
Works directly on the in-memory SystemData snapshot it is given.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Iterable, Optional

from ..records.models import Customer, Package, Product, ProductType, SystemData


logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    """Result of record validation."""
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def generate_id(prefix: str, existing_ids: Iterable[str]) -> str:
    """Generate a unique `<PREFIX>-<epoch ms>` record ID."""
    base = f"{prefix}-{int(time.time() * 1000)}"
    existing = set(existing_ids)
    candidate = base
    counter = 1
    while candidate in existing:
        candidate = f"{base}-{counter}"
        counter += 1
    return candidate


class RecordsService:
    """Service for managing customers, products and packages."""

    def __init__(self, data: SystemData):
        self.data = data

    # ------------------------------------------------------------------
    # Customers
    # ------------------------------------------------------------------
    def list_customers(self) -> list[Customer]:
        return list(self.data.customers)

    def get_customer(self, customer_id: str) -> Optional[Customer]:
        """Get a single customer by ID."""
        for customer in self.data.customers:
            if customer.id == customer_id:
                return customer
        return None

    def search_customers(self, text: str) -> list[Customer]:
        """Case-insensitive match on company or contact name."""
        needle = (text or '').strip().lower()
        if not needle:
            return self.list_customers()
        return [
            c for c in self.data.customers
            if needle in c.company.lower() or needle in c.name.lower()
        ]

    def validate_customer(self, customer: Customer) -> ValidationResult:
        result = ValidationResult(valid=True)
        for label, value in (("Company", customer.company), ("Contact name", customer.name),
                             ("Phone", customer.phone)):
            if not (value or '').strip():
                result.errors.append(f"{label} is required")
                result.valid = False

        if customer.email and '@' not in customer.email:
            result.warnings.append("Email address looks invalid")

        if result.valid:
            duplicates = [c for c in self.data.customers
                          if c.id != customer.id and c.company.strip().lower() == customer.company.strip().lower()]
            if duplicates:
                result.warnings.append(f"Company '{customer.company}' already exists ({duplicates[0].id})")
        return result

    def create_customer(self, customer: Customer) -> Customer:
        """Create a new customer."""
        validation = self.validate_customer(customer)
        if not validation.valid:
            raise ValueError("; ".join(validation.errors))

        if not customer.id:
            customer.id = generate_id("CUST", (c.id for c in self.data.customers))
        if self.get_customer(customer.id):
            raise ValueError(f"Customer with ID '{customer.id}' already exists")

        self.data.customers.append(customer)
        logger.info("Created customer %s (%s)", customer.id, customer.company)
        return customer

    def update_customer(self, customer_id: str, updates: dict) -> Customer:
        """Update an existing customer."""
        customer = self.get_customer(customer_id)
        if customer is None:
            raise ValueError(f"Customer with ID '{customer_id}' not found")

        candidate = Customer.from_dict({**customer.to_dict(), **updates, 'id': customer_id})
        validation = self.validate_customer(candidate)
        if not validation.valid:
            raise ValueError("; ".join(validation.errors))

        index = self.data.customers.index(customer)
        self.data.customers[index] = candidate
        logger.info("Updated customer %s", customer_id)
        return candidate

    def delete_customer(self, customer_id: str) -> bool:
        """Delete a customer. Their orders are kept."""
        customer = self.get_customer(customer_id)
        if customer is None:
            raise ValueError(f"Customer with ID '{customer_id}' not found")

        self.data.customers.remove(customer)
        orphaned = sum(1 for o in self.data.orders if o.customer_id == customer_id)
        if orphaned:
            logger.warning("Deleted customer %s still has %d orders", customer_id, orphaned)
        return True

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------
    def list_products(self, product_type: Optional[ProductType] = None) -> list[Product]:
        if product_type is None:
            return list(self.data.products)
        product_type = ProductType.parse(product_type)
        return [p for p in self.data.products if p.type == product_type]

    def get_product(self, product_id: str) -> Optional[Product]:
        for product in self.data.products:
            if product.id == product_id:
                return product
        return None

    def group_products_by_type(self) -> dict[ProductType, list[Product]]:
        groups = {t: [] for t in ProductType}
        for product in self.data.products:
            groups[product.type].append(product)
        return groups

    def validate_product(self, product: Product) -> ValidationResult:
        result = ValidationResult(valid=True)
        if not (product.name or '').strip():
            result.errors.append("Name is required")
            result.valid = False
        if product.price < 0:
            result.errors.append("Price must not be negative")
            result.valid = False
        elif product.price == 0:
            result.warnings.append("Price is zero")
        if product.promotion and not product.promotion_detail:
            result.warnings.append("Promotion enabled without details")
        return result

    def create_product(self, product: Product) -> Product:
        validation = self.validate_product(product)
        if not validation.valid:
            raise ValueError("; ".join(validation.errors))

        if not product.id:
            product.id = generate_id("PROD", (p.id for p in self.data.products))
        if self.get_product(product.id):
            raise ValueError(f"Product with ID '{product.id}' already exists")

        self.data.products.append(product)
        logger.info("Created product %s (%s @ %s)", product.id, product.name, product.price)
        return product

    def delete_product(self, product_id: str) -> bool:
        """Delete a product. Packages keep their embedded copy."""
        product = self.get_product(product_id)
        if product is None:
            raise ValueError(f"Product with ID '{product_id}' not found")
        self.data.products.remove(product)
        return True

    # ------------------------------------------------------------------
    # Packages
    # ------------------------------------------------------------------
    def list_packages(self) -> list[Package]:
        return list(self.data.packages)

    def get_package(self, package_id: str) -> Optional[Package]:
        for package in self.data.packages:
            if package.id == package_id:
                return package
        return None

    def create_package(self, name: str, product_ids: list[str], note: Optional[str] = None) -> Package:
        """
        Bundle existing products into a package.

        The package embeds copies of the products and is priced at the
        sum of their current prices.
        """
        if not (name or '').strip():
            raise ValueError("Name is required")
        if not product_ids:
            raise ValueError("A package needs at least one product")

        products = []
        for product_id in dict.fromkeys(product_ids):
            product = self.get_product(product_id)
            if product is None:
                raise ValueError(f"Product with ID '{product_id}' not found")
            products.append(Product.from_dict(product.to_dict()))

        package = Package(
            id=generate_id("PKG", (p.id for p in self.data.packages)),
            name=name,
            products=products,
            note=note,
        )
        self.data.packages.append(package)
        logger.info("Created package %s with %d products (%s)", package.id, len(products), package.total_price)
        return package

    def delete_package(self, package_id: str) -> bool:
        package = self.get_package(package_id)
        if package is None:
            raise ValueError(f"Package with ID '{package_id}' not found")
        self.data.packages.remove(package)
        return True

    def get_stats(self) -> dict:
        """Get counts of stored records."""
        return {
            'customers': len(self.data.customers),
            'products': len(self.data.products),
            'packages': len(self.data.packages),
            'orders': len(self.data.orders),
            'products_by_type': {t.value: len(items) for t, items in self.group_products_by_type().items()},
        }
