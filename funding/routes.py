from typing import Optional
from fastapi import APIRouter

from funding.database import SessionLocal
from funding.ledger import TotalsLedger
from funding.payments import (
    create_payment_intent,
    get_saved_method,
    pay_with_saved_method,
    record_payment,
)
from funding.schemas import (
    PaymentIntentCredentials,
    PaymentIntentRequest,
    RecordPaymentRequest,
    SavedMethodPaymentRequest,
    SavedMethodView,
    Totals,
)

router = APIRouter(prefix="/api")

ledger = TotalsLedger(SessionLocal)


@router.post("/create-payment-intent", response_model=PaymentIntentCredentials)
def create_payment_intent_api(request: PaymentIntentRequest):
    return create_payment_intent(request.amount, request.side, request.customerId)


@router.post("/pay-with-saved-method", response_model=Totals)
def pay_with_saved_method_api(request: SavedMethodPaymentRequest):
    return pay_with_saved_method(request.amount, request.side, request.customerId, ledger)


@router.post("/record-payment", response_model=Totals)
def record_payment_api(request: RecordPaymentRequest):
    return record_payment(request.paymentIntentId, request.side, ledger)


@router.get("/saved-payment", response_model=SavedMethodView, response_model_exclude_none=True)
def saved_payment_api(customerId: Optional[str] = None):
    return get_saved_method(customerId)


@router.get("/totals", response_model=Totals)
def totals_api():
    return ledger.read()
