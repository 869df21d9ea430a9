import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from airtime_sales import __version__
from airtime_sales.engine import CustomerCategory, PaymentTiming, PricingInput
from airtime_sales.config.settings import configure_logging, get_settings
from airtime_sales.services.app_state import AppState
from airtime_sales.services.storage_service import SnapshotError
from airtime_sales.api.orders_api import router as orders_router
from airtime_sales.api.records_api import customers_router, packages_router, products_router
from airtime_sales.api.state import get_state

configure_logging(get_settings())
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Airtime Sales API",
    description="Backend API for radio advertising orders and quotations",
    version=__version__,
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(customers_router)
app.include_router(products_router)
app.include_router(packages_router)
app.include_router(orders_router)


class CalcRequest(BaseModel):
    unit_price: Optional[Decimal] = Field(default=None, ge=0)
    slot_count: int = Field(default=0, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    active_weekdays: list[int] = Field(default_factory=lambda: [1, 2, 3, 4, 5])
    customer_category: CustomerCategory = CustomerCategory.PRIVATE
    payment_timing: PaymentTiming = PaymentTiming.AFTER_AIRING


@app.get("/")
async def root():
    return {"status": "online", "message": "Airtime Sales API Active"}


@app.post("/pricing/calculate")
async def calculate_pricing(req: CalcRequest, state: AppState = Depends(get_state)):
    request = PricingInput(**req.model_dump())
    result = state.engine.calculate(request)
    if result is None:
        raise HTTPException(
            status_code=422,
            detail={"computable": False, "reason": state.engine.not_computable_reason(request)},
        )
    return {**result.to_dict(), "trace": result.get_trace_text()}


@app.get("/system/status")
async def get_status(state: AppState = Depends(get_state)):
    return {
        "engine_active": True,
        "data_file": str(state.storage.data_file),
        "last_save": state.data.settings.last_save,
        "version": state.data.settings.version,
        **state.records.get_stats(),
    }


@app.post("/api/data/save")
async def save_data(state: AppState = Depends(get_state)):
    data = state.save()
    return {"success": True, "last_save": data.settings.last_save}


@app.post("/api/data/export")
async def export_data(state: AppState = Depends(get_state)):
    path = state.storage.export_data(state.data, state.settings.export_dir)
    return {"success": True, "path": str(path)}


@app.post("/api/data/import")
async def import_data(payload: dict, state: AppState = Depends(get_state)):
    """Replace the current snapshot with an uploaded backup and save it."""
    try:
        data = state.storage.parse(payload)
    except SnapshotError as e:
        raise HTTPException(status_code=400, detail=str(e))
    state.replace_data(data)
    state.save()
    logger.info("Imported snapshot with %d customers and %d orders", len(data.customers), len(data.orders))
    return {"success": True, **state.records.get_stats()}


@app.delete("/api/data")
async def clear_data(state: AppState = Depends(get_state)):
    state.clear()
    return {"success": True}
