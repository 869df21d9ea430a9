"""
Orders API - FastAPI router for order entry, rollups and quotations.
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..engine.dates import DurationMode
from ..engine.models import PaymentTiming
from ..records.models import ItemKind
from ..services.app_state import AppState
from ..services.order_service import OrderSelection
from .state import get_state

router = APIRouter(prefix="/api", tags=["orders"])


class OrderRequest(BaseModel):
    """Request model mirroring the order-entry form."""
    customer_id: Optional[str] = None
    item_kind: ItemKind = ItemKind.PRODUCE
    item_id: Optional[str] = None
    time_slots: list[str] = Field(default_factory=list)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    duration_mode: DurationMode = DurationMode.DATE
    duration_value: Optional[int] = Field(default=None, ge=1)
    days_of_week: list[int] = Field(default_factory=lambda: [1, 2, 3, 4, 5])
    payment_timing: PaymentTiming = PaymentTiming.AFTER_AIRING
    note: Optional[str] = None

    def to_selection(self) -> OrderSelection:
        return OrderSelection(**self.model_dump())


@router.post("/orders/quote")
async def quote_order(req: OrderRequest, state: AppState = Depends(get_state)):
    """Preview pricing for the current form without saving."""
    try:
        selection = req.to_selection()
        result = state.orders.quote(selection)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if result is None:
        return {"computable": False, "pricing": None}
    return {"computable": True, "pricing": result.to_dict(), "trace": result.get_trace_text()}


@router.get("/orders")
async def list_orders(customer_id: Optional[str] = None, state: AppState = Depends(get_state)):
    return [o.to_dict() for o in state.orders.list_orders(customer_id)]


@router.post("/orders")
async def place_order(req: OrderRequest, state: AppState = Depends(get_state)):
    try:
        order = state.orders.place_order(req.to_selection())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return order.to_dict()


@router.delete("/orders/{order_id}")
async def delete_order(order_id: str, state: AppState = Depends(get_state)):
    try:
        state.orders.delete_order(order_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "message": f"Order '{order_id}' deleted"}


@router.get("/campaign/totals")
async def campaign_totals(customer_id: Optional[str] = None, state: AppState = Depends(get_state)):
    totals = state.orders.campaign_totals(customer_id)
    return {
        "orders": totals.orders,
        "base": str(totals.base),
        "discount": str(totals.discount),
        "net": str(totals.net),
    }


@router.get("/campaign/rollup")
async def customer_rollup(state: AppState = Depends(get_state)):
    df = state.orders.customer_rollup()
    for col in ('Base Total', 'Discount', 'Net Total'):
        df[col] = df[col].astype(str)
    return df.to_dict(orient="records")


@router.get("/quotation/{customer_id}")
async def get_quotation(
    customer_id: str,
    staff_name: Optional[str] = None,
    staff_phone: Optional[str] = None,
    format: str = "json",
    state: AppState = Depends(get_state),
):
    """Quotation for a customer as JSON or printable text."""
    try:
        quotation = state.quotations.build(customer_id, staff_name, staff_phone)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    if format == "text":
        return {"text": quotation.to_text()}
    return quotation.to_dict()
