"""
Records API - FastAPI routers for customers, products and packages.
"""
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..engine.models import CustomerCategory
from ..records.models import Customer, PotentialLevel, Product, ProductType
from ..services.app_state import AppState
from .state import get_state

customers_router = APIRouter(prefix="/api/customers", tags=["customers"])
products_router = APIRouter(prefix="/api/products", tags=["products"])
packages_router = APIRouter(prefix="/api/packages", tags=["packages"])


# Pydantic models for API
class CustomerCreate(BaseModel):
    """Request model for creating a customer."""
    company: str
    name: str
    phone: str
    type: CustomerCategory = CustomerCategory.PRIVATE
    category: Optional[str] = None
    address: Optional[str] = None
    position: Optional[str] = None
    email: str = ""
    potential: PotentialLevel = PotentialLevel.MEDIUM
    note: Optional[str] = None


class CustomerUpdate(BaseModel):
    """Request model for updating a customer."""
    company: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    type: Optional[CustomerCategory] = None
    category: Optional[str] = None
    address: Optional[str] = None
    position: Optional[str] = None
    email: Optional[str] = None
    potential: Optional[PotentialLevel] = None
    note: Optional[str] = None


class ProductCreate(BaseModel):
    """Request model for creating a product."""
    name: str
    price: Decimal = Field(ge=0)
    type: ProductType = ProductType.ON_AIR
    promotion: bool = False
    promotion_detail: Optional[str] = None
    note: Optional[str] = None


class PackageCreate(BaseModel):
    """Request model for bundling products."""
    name: str
    product_ids: list[str]
    note: Optional[str] = None


# Customers

@customers_router.get("")
async def list_customers(search: Optional[str] = None, state: AppState = Depends(get_state)):
    """List customers, optionally filtered by company or contact name."""
    return [c.to_dict() for c in state.records.search_customers(search or '')]


@customers_router.get("/{customer_id}")
async def get_customer(customer_id: str, state: AppState = Depends(get_state)):
    customer = state.records.get_customer(customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail=f"Customer '{customer_id}' not found")
    return customer.to_dict()


@customers_router.post("")
async def create_customer(payload: CustomerCreate, state: AppState = Depends(get_state)):
    try:
        customer = state.records.create_customer(Customer(**payload.model_dump()))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return customer.to_dict()


@customers_router.put("/{customer_id}")
async def update_customer(customer_id: str, updates: CustomerUpdate, state: AppState = Depends(get_state)):
    update_dict = updates.model_dump(exclude_unset=True, mode='json')
    if state.records.get_customer(customer_id) is None:
        raise HTTPException(status_code=404, detail=f"Customer '{customer_id}' not found")
    try:
        return state.records.update_customer(customer_id, update_dict).to_dict()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@customers_router.delete("/{customer_id}")
async def delete_customer(customer_id: str, state: AppState = Depends(get_state)):
    try:
        state.records.delete_customer(customer_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "message": f"Customer '{customer_id}' deleted"}


# Products

@products_router.get("")
async def list_products(type: Optional[ProductType] = None, state: AppState = Depends(get_state)):
    return [p.to_dict() for p in state.records.list_products(type)]


@products_router.post("")
async def create_product(payload: ProductCreate, state: AppState = Depends(get_state)):
    try:
        product = state.records.create_product(Product(**payload.model_dump()))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return product.to_dict()


@products_router.delete("/{product_id}")
async def delete_product(product_id: str, state: AppState = Depends(get_state)):
    try:
        state.records.delete_product(product_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "message": f"Product '{product_id}' deleted"}


# Packages

@packages_router.get("")
async def list_packages(state: AppState = Depends(get_state)):
    return [p.to_dict() for p in state.records.list_packages()]


@packages_router.post("")
async def create_package(payload: PackageCreate, state: AppState = Depends(get_state)):
    try:
        package = state.records.create_package(payload.name, payload.product_ids, payload.note)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return package.to_dict()


@packages_router.delete("/{package_id}")
async def delete_package(package_id: str, state: AppState = Depends(get_state)):
    try:
        state.records.delete_package(package_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "message": f"Package '{package_id}' deleted"}
