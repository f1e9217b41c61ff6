"""
Payment orchestration for the two-sided funding ledger.

Two ways money reaches the ledger:

1. Interactive: ``create_payment_intent`` hands the client a client secret and
   an ephemeral key; the client confirms the charge with the processor; then
   ``record_payment`` re-fetches the intent and credits the ledger only if the
   processor itself reports it as succeeded.
2. Saved card: ``pay_with_saved_method`` charges the customer's default
   payment method off-session and credits the ledger on the spot.

Nothing the client says about a payment's status is trusted.
"""
import logging
import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

import stripe

from funding import stripe_service
from funding.config import MIN_AMOUNT, SIDES
from funding.errors import ConflictError, NotFoundError, UpstreamError, ValidationError
from funding.ledger import TotalsLedger
from funding.schemas import PaymentIntentCredentials, SavedMethodView, Totals

logger = logging.getLogger(__name__)

SAVED_METHOD_TYPES = ("card",)


def validate_side(side) -> str:
    if side not in SIDES:
        raise ValidationError("Invalid side")
    return side


def validate_amount(amount) -> int:
    """Check a requested amount and convert it to integer minor units (half-up)."""
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise ValidationError("Invalid amount")
    if isinstance(amount, float) and not math.isfinite(amount):
        raise ValidationError("Invalid amount")
    if amount < MIN_AMOUNT:
        raise ValidationError("Invalid amount")
    return int(Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _require(value, message: str) -> str:
    if not value:
        raise ValidationError(message)
    return value


def _object_id(ref) -> Optional[str]:
    """Related objects come back either as an id or expanded."""
    if ref is None or isinstance(ref, str):
        return ref
    return ref.id


def _is_missing(exc: stripe.error.StripeError) -> bool:
    return isinstance(exc, stripe.error.InvalidRequestError) and exc.code == "resource_missing"


def _upstream(exc: stripe.error.StripeError) -> UpstreamError:
    if isinstance(exc, (stripe.error.InvalidRequestError, stripe.error.CardError)) and exc.user_message:
        return UpstreamError(exc.user_message)
    return UpstreamError("Payment processor unavailable")


def _fetch_customer(customer_id: str):
    """Customer object, or None when it does not exist or was deleted."""
    try:
        customer = stripe_service.retrieve_customer(customer_id)
    except stripe.error.StripeError as e:
        if _is_missing(e):
            return None
        logger.exception("Failed to retrieve customer %s", customer_id)
        raise _upstream(e) from e
    if getattr(customer, "deleted", False):
        return None
    return customer


def _default_payment_method_id(customer) -> Optional[str]:
    if customer is None:
        return None
    invoice_settings = getattr(customer, "invoice_settings", None)
    if not invoice_settings:
        return None
    return _object_id(getattr(invoice_settings, "default_payment_method", None))


def resolve_customer(candidate_id: Optional[str] = None) -> str:
    """
    Return a usable customer id, reusing ``candidate_id`` when the processor
    still knows it. A stale candidate is dropped and a new customer created.
    """
    if candidate_id:
        try:
            customer = stripe_service.retrieve_customer(candidate_id)
        except stripe.error.StripeError as e:
            logger.warning("Discarding customer %s: %s", candidate_id, e.user_message)
        else:
            if not getattr(customer, "deleted", False):
                return candidate_id
            logger.warning("Discarding deleted customer %s", candidate_id)

    customer = stripe_service.create_customer()
    logger.info("Created customer %s", customer.id)
    return customer.id


def create_payment_intent(amount, side, customer_id: Optional[str] = None) -> PaymentIntentCredentials:
    side = validate_side(side)
    amount = validate_amount(amount)

    try:
        customer_id = resolve_customer(customer_id)
        intent = stripe_service.create_payment_intent(amount, customer_id, side)
        ephemeral_key = stripe_service.create_ephemeral_key(customer_id)
    except stripe.error.StripeError as e:
        logger.exception("Failed to create payment intent for %s", side)
        raise _upstream(e) from e

    logger.info("Created payment intent %s: %d toward %s for customer %s",
                intent.id, amount, side, customer_id)

    return PaymentIntentCredentials(
        clientSecret=intent.client_secret,
        customerId=customer_id,
        ephemeralKey=ephemeral_key.secret,
    )


def get_saved_method(customer_id) -> SavedMethodView:
    customer_id = _require(customer_id, "Missing customer id")

    payment_method_id = _default_payment_method_id(_fetch_customer(customer_id))
    if not payment_method_id:
        return SavedMethodView(hasSavedMethod=False)

    try:
        payment_method = stripe_service.retrieve_payment_method(payment_method_id)
    except stripe.error.StripeError as e:
        if _is_missing(e):
            return SavedMethodView(hasSavedMethod=False)
        logger.exception("Failed to retrieve payment method %s", payment_method_id)
        raise _upstream(e) from e

    card = getattr(payment_method, "card", None)
    if payment_method.type not in SAVED_METHOD_TYPES or not card:
        return SavedMethodView(hasSavedMethod=False)

    return SavedMethodView(hasSavedMethod=True, brand=card.brand, last4=card.last4)


def pay_with_saved_method(amount, side, customer_id, ledger: TotalsLedger) -> Totals:
    customer_id = _require(customer_id, "Missing customer id")
    side = validate_side(side)
    amount = validate_amount(amount)

    payment_method_id = _default_payment_method_id(_fetch_customer(customer_id))
    if not payment_method_id:
        raise NotFoundError("No saved payment method")

    try:
        intent = stripe_service.charge_off_session(amount, customer_id, payment_method_id, side)
    except stripe.error.StripeError as e:
        logger.warning("Saved method charge for customer %s failed: %s", customer_id, e.user_message)
        raise ConflictError(e.user_message or "Payment failed") from e

    if intent.status != "succeeded":
        logger.warning("Saved method charge %s is %s, not recording", intent.id, intent.status)
        raise ConflictError("Payment requires action")

    logger.info("Charged saved method for customer %s: %s", customer_id, intent.id)
    return ledger.add(side, intent.amount)


def _remember_payment_method(intent) -> None:
    """Make the intent's payment method the customer's default; failures are only logged."""
    customer_id = _object_id(intent.customer)
    payment_method_id = _object_id(intent.payment_method)
    if not customer_id or not payment_method_id:
        return
    try:
        stripe_service.set_default_payment_method(customer_id, payment_method_id)
    except stripe.error.StripeError as e:
        logger.warning("Could not save default payment method for customer %s: %s",
                       customer_id, e.user_message)


def record_payment(payment_intent_id, side, ledger: TotalsLedger) -> Totals:
    """
    Credit the ledger for a payment the client confirmed.

    The intent is always re-read from the processor; only its own status and
    side metadata decide the outcome. Recording the same intent twice credits
    it twice, since no record of already-credited intents is kept.
    """
    payment_intent_id = _require(payment_intent_id, "Missing payment intent id")
    side = validate_side(side)

    try:
        intent = stripe_service.retrieve_payment_intent(payment_intent_id)
    except stripe.error.StripeError as e:
        if _is_missing(e):
            raise NotFoundError("Payment intent not found") from e
        logger.exception("Failed to retrieve payment intent %s", payment_intent_id)
        raise _upstream(e) from e

    if intent.status != "succeeded":
        raise ConflictError("Payment not completed")

    intent_side = (intent.metadata or {}).get("side")
    if intent_side and intent_side != side:
        logger.warning("Payment intent %s is for %s, client claimed %s",
                       intent.id, intent_side, side)
        raise ConflictError("Payment side mismatch")

    _remember_payment_method(intent)

    logger.info("Recording payment intent %s: %d toward %s", intent.id, intent.amount, side)
    return ledger.add(side, intent.amount)
