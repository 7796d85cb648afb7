# flashmarket/services/payment_service.py
import logging
import random
import string
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any
from urllib.parse import urlencode

from pydantic import ValidationError

from flashmarket.schemas.payment import (
    BankTransferPaymentData,
    BitcoinPaymentData,
    CardPaymentData,
    PaymentFields,
    PaymentMethodInfo,
    PaymentResult,
    PaymentTotals,
    PayPalPaymentData,
    SinpePaymentData,
    valid_btc_address,
)

logger = logging.getLogger(__name__)

# Simulated exchange rates
USD_TO_CRC = 520
BTC_USD_RATE = 43500

STORE_BANK_ACCOUNT: dict[str, str] = {
    "beneficiary": "FlashMarket S.A.",
    "bank": "Banco Nacional de Costa Rica",
    "account_type": "Checking",
    "account_number": "100-01-000-123456-7",
    "legal_id": "3-101-654321",
    "currency": "USD",
    "swift": "BNCRCRSJ",
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


class PaymentMethod(ABC):
    """
    Strategy interface for a way of paying.

    Each method names the schema its fields are parsed with.
    Implementations only simulate the provider: no network calls.
    """

    schema: type[PaymentFields]

    @abstractmethod
    def info(self) -> PaymentMethodInfo:
        ...

    def parse(self, data: dict[str, Any]) -> PaymentFields:
        """Parse raw fields; raises pydantic.ValidationError."""
        return self.schema.model_validate(data)

    def validate(self, data: dict[str, Any]) -> list[str]:
        """Return validation errors; empty list means the data is usable."""
        try:
            self.parse(data)
        except ValidationError as exc:
            return self.schema.error_messages(exc)
        return []

    @abstractmethod
    def process(self, amount: float, fields: PaymentFields) -> dict[str, Any]:
        """
        Charge `amount` and return method-specific follow-up data.
        Must include a "transaction_id" key.
        """


class CreditCard(PaymentMethod):
    schema = CardPaymentData

    def info(self) -> PaymentMethodInfo:
        return PaymentMethodInfo(
            id="card",
            name="Credit/Debit Card",
            description="Visa, Mastercard, American Express",
            fee_percent=2.5,
            processing_time="Immediate",
            fields=["holder", "card_number", "expiry", "cvv"],
        )

    def process(self, amount: float, fields: CardPaymentData) -> dict[str, Any]:
        return {
            "transaction_id": f"TXN-{uuid.uuid4().hex[:12].upper()}",
            "last_digits": fields.card_number[-4:],
            "holder": fields.holder,
        }


class PayPal(PaymentMethod):
    schema = PayPalPaymentData

    def __init__(self, return_base_url: str = "http://localhost:3000"):
        self.return_base_url = return_base_url.rstrip("/")

    def info(self) -> PaymentMethodInfo:
        return PaymentMethodInfo(
            id="paypal",
            name="PayPal",
            description="Secure payment with your PayPal account",
            fee_percent=3.4,
            processing_time="Immediate",
            fields=["email"],
            requires_redirect=True,
        )

    def process(self, amount: float, fields: PayPalPaymentData) -> dict[str, Any]:
        params = urlencode(
            {
                "amount": f"{amount:.2f}",
                "currency": "USD",
                "email": fields.email,
                "return_url": f"{self.return_base_url}/checkout/success",
                "cancel_url": f"{self.return_base_url}/checkout/cancel",
            }
        )
        return {
            "transaction_id": f"PAYPAL-{uuid.uuid4().hex[:9].upper()}",
            "payment_url": f"https://www.paypal.com/checkoutnow?{params}",
            "email": fields.email,
            "instructions": [
                'Click "Continue to PayPal"',
                "Log in to your PayPal account",
                "Confirm the payment",
                "You will be sent back to FlashMarket",
            ],
        }


class SinpeMovil(PaymentMethod):
    """Costa Rican instant bank transfer confirmed from the customer's banking app."""

    schema = SinpePaymentData

    def info(self) -> PaymentMethodInfo:
        return PaymentMethodInfo(
            id="sinpe",
            name="SINPE Movil",
            description="Instant transfer in Costa Rica",
            fee_percent=0,
            processing_time="1-2 minutes",
            fields=["phone", "national_id"],
            requires_confirmation=True,
        )

    @staticmethod
    def sinpe_code(amount: float, phone: str) -> str:
        stamp = str(int(_now().timestamp() * 1000))[-6:]
        return f"{stamp}{phone[-4:]}{int(amount):04d}"

    def process(self, amount: float, fields: SinpePaymentData) -> dict[str, Any]:
        code = self.sinpe_code(amount, fields.phone)
        return {
            "transaction_id": f"SINPE-{uuid.uuid4().hex[:10].upper()}",
            "sinpe_code": code,
            "phone": fields.phone,
            "amount_crc": round(amount * USD_TO_CRC, 2),
            "expires_in_minutes": 10,
            "instructions": [
                "Open your mobile banking app",
                'Select "SINPE Movil"',
                f"Enter the code: {code}",
                f"Confirm the payment of CRC {amount * USD_TO_CRC:.2f}",
            ],
        }


class Bitcoin(PaymentMethod):
    ADDRESS_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz123456789"

    schema = BitcoinPaymentData
    valid_address = staticmethod(valid_btc_address)

    def info(self) -> PaymentMethodInfo:
        return PaymentMethodInfo(
            id="bitcoin",
            name="Bitcoin (BTC)",
            description="Pay with Bitcoin",
            fee_percent=1.5,
            processing_time="10-30 minutes",
            fields=["email", "wallet"],
            requires_confirmation=True,
        )

    def new_address(self) -> str:
        # legacy-style address: "1" + 33 base58 characters
        return "1" + "".join(random.choice(self.ADDRESS_ALPHABET) for _ in range(33))

    @staticmethod
    def to_btc(amount_usd: float) -> str:
        return f"{amount_usd / BTC_USD_RATE:.8f}"

    def process(self, amount: float, fields: BitcoinPaymentData) -> dict[str, Any]:
        address = self.new_address()
        amount_btc = self.to_btc(amount)
        return {
            "transaction_id": f"BTC-{uuid.uuid4().hex[:10].upper()}",
            "address": address,
            "amount_btc": amount_btc,
            "payment_uri": f"bitcoin:{address}?amount={amount_btc}",
            "exchange_rate": {"currency": "USD", "btc_value": BTC_USD_RATE},
            "notify_email": fields.email,
            "expires_in_minutes": 30,
            "confirmations_required": 3,
            "instructions": [
                "Open your Bitcoin wallet",
                f"Send exactly {amount_btc} BTC to the address shown",
                "The payment is confirmed after 3 network confirmations",
            ],
        }


class BankTransfer(PaymentMethod):
    schema = BankTransferPaymentData

    def info(self) -> PaymentMethodInfo:
        return PaymentMethodInfo(
            id="transfer",
            name="Bank Transfer",
            description="Manual transfer to the store's bank account",
            fee_percent=0,
            processing_time="24-48 hours",
            fields=["customer_name", "email"],
            requires_confirmation=True,
        )

    @staticmethod
    def new_reference() -> str:
        suffix = "".join(random.choice(string.ascii_uppercase + string.digits) for _ in range(6))
        return f"FM{_now():%y%m%d}-{suffix}"

    def process(self, amount: float, fields: BankTransferPaymentData) -> dict[str, Any]:
        reference = self.new_reference()
        return {
            "transaction_id": reference,
            "reference": reference,
            "customer_name": fields.customer_name,
            "account": {**STORE_BANK_ACCOUNT, "amount_due": f"${amount:.2f}"},
            "valid_days": 7,
            "instructions": [
                "Log in to your online banking",
                "Transfer the amount to the account above",
                "Use the reference as the transfer description",
                "Your order ships once the payment is confirmed (24-48 hours)",
            ],
        }


PAYMENT_METHODS: dict[str, type[PaymentMethod]] = {
    "card": CreditCard,
    "paypal": PayPal,
    "sinpe": SinpeMovil,
    "bitcoin": Bitcoin,
    "transfer": BankTransfer,
}


def get_payment_method(method_id: str) -> PaymentMethod | None:
    method_cls = PAYMENT_METHODS.get(method_id.strip().lower())
    return method_cls() if method_cls is not None else None


class PaymentProcessor:
    """
    Runs a payment through whichever PaymentMethod it currently holds.

    Flow of process():
      1. parse the method-specific data with the method's schema
      2. add the method's fee to the amount
      3. let the method produce its follow-up data
    """

    def __init__(self, method: PaymentMethod):
        self.method = method

    def change_method(self, method: PaymentMethod) -> None:
        logger.info("Payment method changed to %s", method.info().id)
        self.method = method

    def validate(self, data: dict[str, Any]) -> list[str]:
        return self.method.validate(data)

    def fee(self, amount: float) -> float:
        return amount * self.method.info().fee_percent / 100

    def totals_with_fee(self, amount: float) -> PaymentTotals:
        fee = self.fee(amount)
        return PaymentTotals(subtotal=amount, fee=fee, total=amount + fee)

    def requires_redirect(self) -> bool:
        return self.method.info().requires_redirect

    def requires_confirmation(self) -> bool:
        return self.method.info().requires_confirmation

    def process(self, amount: float, data: dict[str, Any]) -> PaymentResult:
        info = self.method.info()

        try:
            fields = self.method.parse(data)
        except ValidationError as exc:
            errors = self.method.schema.error_messages(exc)
            logger.info("Payment data rejected by %s: %s", info.id, errors)
            return PaymentResult(
                success=False,
                message="Payment data is invalid",
                step="validation",
                errors=errors,
                method=info.id,
            )

        totals = self.totals_with_fee(amount)
        details = self.method.process(totals.total, fields)
        transaction_id = details.pop("transaction_id")

        logger.info(
            "Payment %s processed with %s: %.2f (fee %.2f)",
            transaction_id, info.id, totals.total, totals.fee,
        )
        return PaymentResult(
            success=True,
            message="Payment processed",
            transaction_id=transaction_id,
            method=info.id,
            amount=totals.total,
            totals=totals,
            requires_redirect=info.requires_redirect,
            requires_confirmation=info.requires_confirmation,
            details=details,
        )
