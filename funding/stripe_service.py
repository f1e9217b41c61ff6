import stripe

from funding.config import STRIPE_SECRET_KEY, STRIPE_API_VERSION, PAYMENT_CURRENCY

if not STRIPE_SECRET_KEY:
    raise RuntimeError("STRIPE_SECRET_KEY is not set. Check your .env file.")

stripe.api_key = STRIPE_SECRET_KEY


def retrieve_customer(customer_id: str):
    return stripe.Customer.retrieve(customer_id)


def create_customer():
    return stripe.Customer.create()


def set_default_payment_method(customer_id: str, payment_method_id: str):
    return stripe.Customer.modify(
        customer_id,
        invoice_settings={"default_payment_method": payment_method_id}
    )


def create_payment_intent(amount: int, customer_id: str, side: str):
    return stripe.PaymentIntent.create(
        amount=amount,
        currency=PAYMENT_CURRENCY,
        customer=customer_id,
        automatic_payment_methods={"enabled": True},
        setup_future_usage="off_session",
        metadata={"side": side}
    )


def charge_off_session(amount: int, customer_id: str, payment_method_id: str, side: str):
    return stripe.PaymentIntent.create(
        amount=amount,
        currency=PAYMENT_CURRENCY,
        customer=customer_id,
        payment_method=payment_method_id,
        confirm=True,
        off_session=True,
        metadata={"side": side}
    )


def retrieve_payment_intent(payment_intent_id: str):
    return stripe.PaymentIntent.retrieve(payment_intent_id)


def create_ephemeral_key(customer_id: str):
    return stripe.EphemeralKey.create(
        customer=customer_id,
        stripe_version=STRIPE_API_VERSION
    )


def retrieve_payment_method(payment_method_id: str):
    return stripe.PaymentMethod.retrieve(payment_method_id)
