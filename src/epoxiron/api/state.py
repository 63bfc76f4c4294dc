"""
Shared service instances for the API routers.
"""
from ..config.settings import get_settings
from ..engine import PricingEngine
from ..services.customer_service import CustomerService
from ..services.delivery_note_service import DeliveryNoteService

settings = get_settings()
engine = PricingEngine(settings)
customer_service = CustomerService()
note_service = DeliveryNoteService(customer_service, engine=engine, settings=settings)
