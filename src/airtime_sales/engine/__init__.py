"""Engine subpackage - broadcast order pricing."""
from .pricing_engine import PricingEngine, calculate_pricing
from .models import PricingInput, PricingResult, CustomerCategory, PaymentTiming

__all__ = [
    'PricingEngine', 'calculate_pricing', 'PricingInput', 'PricingResult',
    'CustomerCategory', 'PaymentTiming',
]
