from typing import Any, Optional
from pydantic import BaseModel


class Totals(BaseModel):
    left: int
    right: int
    lastUpdated: int          # epoch milliseconds


class PaymentIntentRequest(BaseModel):
    amount: Any = None         # checked by validate_amount
    side: Any = None           # checked by validate_side
    customerId: Optional[str] = None


class PaymentIntentCredentials(BaseModel):
    clientSecret: str
    customerId: str
    ephemeralKey: str


class SavedMethodPaymentRequest(BaseModel):
    amount: Any = None         # checked by validate_amount
    side: Any = None           # checked by validate_side
    customerId: Optional[str] = None


class RecordPaymentRequest(BaseModel):
    paymentIntentId: Optional[str] = None
    side: Any = None           # checked by validate_side


class SavedMethodView(BaseModel):
    hasSavedMethod: bool
    brand: Optional[str] = None
    last4: Optional[str] = None
