from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from epoxiron import __version__
from epoxiron.api.customers_api import router as customers_router
from epoxiron.api.delivery_notes_api import router as delivery_notes_router
from epoxiron.api.state import note_service, settings
from epoxiron.data.rate_cards import seed_customers
from epoxiron.utils.logger import setup_logging

setup_logging(settings.log_level)

app = FastAPI(
    title="Epoxiron API",
    description="Customers, rates and delivery notes for the epoxy coating workshop",
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
app.include_router(delivery_notes_router)

if settings.seed_on_startup and settings.rate_cards_csv and settings.rate_cards_csv.exists():
    seed_customers(note_service.customers, settings.rate_cards_csv)


@app.get("/")
async def root():
    return {"status": "online", "message": "Epoxiron API Active"}


@app.get("/system/status")
async def get_status():
    return {
        "minimum_rate_policy": settings.minimum_rate_policy,
        "customers_count": len(note_service.customers.store),
        "delivery_notes_count": len(note_service.store),
    }
