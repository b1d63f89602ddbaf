from datetime import date
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from budget_engine import __version__
from budget_engine.config import configure_logging
from budget_engine.engine import ItemRef, PricebookType, ResolutionContext
from budget_engine.api.revisions_api import router as revisions_router
from budget_engine.api.state import engine

configure_logging()

app = FastAPI(
    title="Budget Engine API",
    description="Revision lifecycle and pricebook price resolution for engineering budgets",
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

# Include revision lifecycle API
app.include_router(revisions_router)


class PriceRequest(BaseModel):
    item_type: PricebookType
    item_id: str
    company_id: Optional[str] = None
    region_id: Optional[str] = None
    manufacturer_id: Optional[str] = None
    as_of: Optional[date] = None


class PriceBatchRequest(BaseModel):
    item_type: PricebookType
    item_ids: list[str]
    company_id: Optional[str] = None
    region_id: Optional[str] = None
    manufacturer_id: Optional[str] = None
    as_of: Optional[date] = None


def _price_payload(result) -> dict:
    return {
        "item_id": result.item_id,
        "price": result.price,
        "currency": result.currency,
        "pricebook_id": result.pricebook_id,
        "pricebook_name": result.pricebook_name,
        "origin": result.origin.value,
        "manufacturer_id": result.manufacturer_id,
        "productivity_value": result.productivity_value,
        "productivity_type": result.productivity_type.value if result.productivity_type else None,
        "productivity_unit": result.productivity_unit,
        "trace": result.get_trace_text(),
    }


@app.get("/")
async def root():
    return {"status": "online", "message": "Budget Engine API Active"}


@app.post("/prices/resolve")
async def resolve_price(req: PriceRequest):
    context = ResolutionContext(
        as_of=req.as_of or date.today(),
        company_id=req.company_id,
        region_id=req.region_id,
        manufacturer_id=req.manufacturer_id,
    )
    result = engine.resolver.resolve(ItemRef(req.item_type, req.item_id), context)
    if not result:
        # Unresolved prices are reported, never defaulted to zero
        raise HTTPException(status_code=404, detail=result.reason)
    return _price_payload(result)


@app.post("/prices/resolve-batch")
async def resolve_prices(req: PriceBatchRequest):
    context = ResolutionContext(
        as_of=req.as_of or date.today(),
        company_id=req.company_id,
        region_id=req.region_id,
        manufacturer_id=req.manufacturer_id,
    )
    results = engine.resolver.resolve_many(
        (ItemRef(req.item_type, item_id) for item_id in req.item_ids), context
    )
    return {
        item_id: _price_payload(result) if result else None
        for item_id, result in results.items()
    }


@app.post("/pricebooks/reload")
async def reload_pricebooks():
    try:
        engine.reload_catalog()
    except (FileNotFoundError, ValueError) as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {"success": True, "pricebooks": len(engine.catalog)}


@app.get("/system/status")
async def get_status():
    return {
        "engine_active": True,
        "version": __version__,
        "pricebooks_loaded": len(engine.catalog),
    }
