"""
Pricing Engine - Broadcast order pricing with traceability.

Turns a PricingInput into a PricingResult:
- Active broadcast days counted over the inclusive window
- Base total from unit price, airings per day and days
- Condition discount tier from customer category and campaign length
- Prepayment discount compounded on the post-condition amount
- Flat 7% VAT on the discounted price

The engine is stateless; the same input always yields an equal result.
"""
import logging
from decimal import Decimal
from typing import Optional

from .dates import campaign_months, count_broadcast_days, inclusive_day_span
from .discount_rules import DiscountMatcher, payment_discount_percent
from .models import PricingInput, PricingResult


logger = logging.getLogger(__name__)

VAT_RATE = Decimal("0.07")
HUNDRED = Decimal(100)


class PricingEngine:
    """
    Core pricing engine for airtime orders.

    Resolution order:
    1. Check the input is computable (item priced, window present and ordered)
    2. Count active weekdays in [start_date, end_date]
    3. Base total = unit price × times per day × days
    4. Campaign months = inclusive days / 30
    5. Condition discount tier (first match wins)
    6. Payment discount on the post-condition amount
    7. VAT and net total
    """

    def __init__(self, matcher: Optional[DiscountMatcher] = None):
        self.matcher = matcher or DiscountMatcher()

    @staticmethod
    def not_computable_reason(request: PricingInput) -> Optional[str]:
        """Why the input cannot be priced yet, or None if it can."""
        if request.unit_price is None:
            return "no priced item selected"
        if request.start_date is None or request.end_date is None:
            return "broadcast window incomplete"
        if request.end_date < request.start_date:
            return "end date before start date"
        return None

    def calculate(self, request: PricingInput) -> Optional[PricingResult]:
        """
        Price an order.

        Args:
            request: PricingInput snapshot of the order-entry fields

        Returns:
            PricingResult, or None when the input is not computable
        """
        reason = self.not_computable_reason(request)
        if reason:
            logger.debug("Pricing not computable: %s", reason)
            return None

        total_days = count_broadcast_days(request.start_date, request.end_date, request.active_weekdays)
        times_per_day = max(1, request.slot_count)
        base_total = request.unit_price * times_per_day * total_days

        months = campaign_months(request.start_date, request.end_date)
        condition_percent, tier = self.matcher.condition_discount(request.customer_category, months)
        payment_percent = payment_discount_percent(request.payment_timing)

        condition_amount = base_total * condition_percent / HUNDRED
        payment_amount = (base_total - condition_amount) * payment_percent / HUNDRED
        total_discount = condition_amount + payment_amount

        price_after_discount = base_total - total_discount
        vat_amount = price_after_discount * VAT_RATE
        net_total = price_after_discount + vat_amount

        result = PricingResult(
            total_days=total_days,
            times_per_day=times_per_day,
            base_total=base_total,
            condition_discount_percent=condition_percent,
            payment_discount_percent=payment_percent,
            condition_discount_amount=condition_amount,
            payment_discount_amount=payment_amount,
            total_discount_amount=total_discount,
            price_after_discount=price_after_discount,
            vat_amount=vat_amount,
            net_total=net_total,
            campaign_months=months,
        )

        result.add_trace("Window", f"{request.start_date} → {request.end_date}",
                         f"{inclusive_day_span(request.start_date, request.end_date)} days")
        result.add_trace("Broadcast Days", "Active weekdays in window", str(total_days))
        result.add_trace("Base Total", f"{request.unit_price} × {times_per_day} × {total_days}", str(base_total))
        if tier:
            result.add_trace("Condition Discount", f"{tier.name} ({tier.match_reason})", f"{condition_percent}%")
        else:
            result.add_trace("Condition Discount", f"No tier for {months:.2f} months", "0%")
        if payment_percent:
            result.add_trace("Payment Discount", "Paid before airing", f"{payment_percent}%")
        result.add_trace("VAT", f"{int(VAT_RATE * HUNDRED)}% of {price_after_discount}", str(vat_amount))
        result.add_trace("Net Total", "Price after discount + VAT", str(net_total))

        return result


_default_engine = PricingEngine()


def calculate_pricing(request: PricingInput) -> Optional[PricingResult]:
    """Price an order with the default discount tiers."""
    return _default_engine.calculate(request)
