from fastapi import FastAPI, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware

from ..logging_config import configure_logging
from .mock_service import router as mock_pricing_router
from .schemas import CalculateRequest, from_cart, to_cart, to_change_descriptor
from . import state
from .state import settings

configure_logging(settings.log_level)

app = FastAPI(
    title="Cart Pricing API",
    description="Reprices cart line items and reports pricing problems as annotations",
    version="1.0.0"
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(mock_pricing_router)


@app.get("/")
async def root():
    return {"status": "online", "message": "Cart Pricing API Active"}


@app.post("/carts/calculate")
def calculate_cart(req: CalculateRequest):
    try:
        cart = to_cart(req.cart)
        changes = to_change_descriptor(req.changes, cart) if req.changes else None
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    # Sync route: runs in the threadpool while the price lookup blocks
    state.calculator.calculate(cart, cart.stage, changes, req.locale)
    return jsonable_encoder(from_cart(cart))


@app.get("/system/status")
async def get_status():
    return {
        "engine_active": True,
        "source_mode": settings.source_mode.value,
        "service_url": settings.service_url,
        "service_timeout": settings.service_timeout,
        "price_missing_skus_by_default": settings.price_missing_skus_by_default,
        "default_locale": settings.default_locale,
    }
