# flashmarket/schemas/payment.py
import re
from datetime import datetime, timezone
from typing import Any, ClassVar

from pydantic import ConfigDict, EmailStr, ValidationError, field_validator
from sqlmodel import SQLModel, Field

from flashmarket.schemas.cart import CartSummary

LEGACY_BTC_RE = re.compile(r"^1[a-km-zA-HJ-NP-Z1-9]{25,34}$")
SEGWIT_BTC_RE = re.compile(r"^3[a-km-zA-HJ-NP-Z1-9]{25,34}$")
BECH32_BTC_RE = re.compile(r"^bc1[a-z0-9]{39,59}$")
VALID_PHONE_FIRST_DIGITS = {"2", "4", "5", "6", "7", "8"}


def luhn_valid(number: str) -> bool:
    total = 0
    for idx, char in enumerate(reversed(number)):
        digit = int(char)
        if idx % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


def valid_btc_address(address: str) -> bool:
    return bool(
        LEGACY_BTC_RE.match(address)
        or SEGWIT_BTC_RE.match(address)
        or BECH32_BTC_RE.match(address)
    )


def _require(value: Any, message: str) -> Any:
    if value is None or not str(value).strip():
        raise ValueError(message)
    return value


class PaymentMethodInfo(SQLModel):
    """
    Descriptive data shown when the customer picks a payment method.
    """

    id: str
    name: str
    description: str
    fee_percent: float = Field(ge=0, description="Fee charged on top of the amount")
    processing_time: str
    fields: list[str]
    requires_redirect: bool = False
    requires_confirmation: bool = False


# ----- Method-specific payment fields -----


class PaymentFields(SQLModel):
    """
    Base for the fields one payment method needs.

    Defaults are validated too, so a missing field reports the same
    message as a blank one. Fields meant for other methods are ignored.
    """

    model_config = ConfigDict(extra="ignore", validate_default=True)

    # message used when a value fails a built-in check (wrong type, bad email)
    INVALID_MESSAGES: ClassVar[dict[str, str]] = {}

    @classmethod
    def error_messages(cls, exc: ValidationError) -> list[str]:
        """Turn a ValidationError into customer-facing messages, in field order."""
        messages: list[str] = []
        for error in exc.errors():
            field = str(error["loc"][0]) if error["loc"] else ""
            cause = error.get("ctx", {}).get("error")
            if cause is not None:
                message = str(cause)
            else:
                message = cls.INVALID_MESSAGES.get(field, error["msg"])
            if message not in messages:
                messages.append(message)
        return messages


class CardPaymentData(PaymentFields):
    INVALID_MESSAGES: ClassVar[dict[str, str]] = {
        "holder": "Card holder name is required",
        "card_number": "Invalid card number (must have 16 digits)",
        "expiry": "Invalid expiry date (format: MM/YY)",
        "cvv": "Invalid CVV (must have 3 or 4 digits)",
    }

    holder: str = ""
    card_number: str = ""
    expiry: str = ""
    cvv: str = ""

    @field_validator("holder")
    @classmethod
    def holder_not_blank(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 3:
            raise ValueError("Card holder name is required")
        return v

    @field_validator("card_number")
    @classmethod
    def valid_card_number(cls, v: str) -> str:
        v = re.sub(r"\s", "", v)
        if not re.fullmatch(r"\d{16}", v):
            raise ValueError("Invalid card number (must have 16 digits)")
        if not luhn_valid(v):
            raise ValueError("Invalid card number (Luhn check failed)")
        return v

    @field_validator("cvv")
    @classmethod
    def valid_cvv(cls, v: str) -> str:
        if not re.fullmatch(r"\d{3,4}", v):
            raise ValueError("Invalid CVV (must have 3 or 4 digits)")
        return v

    @field_validator("expiry")
    @classmethod
    def not_expired(cls, v: str) -> str:
        if not re.fullmatch(r"\d{2}/\d{2}", v):
            raise ValueError("Invalid expiry date (format: MM/YY)")
        month, year = (int(part) for part in v.split("/"))
        if month < 1 or month > 12:
            raise ValueError("Invalid month")
        now = datetime.now(timezone.utc)
        # valid through the last day of the expiry month
        if (2000 + year, month) < (now.year, now.month):
            raise ValueError("Card expired")
        return v


class PayPalPaymentData(PaymentFields):
    INVALID_MESSAGES: ClassVar[dict[str, str]] = {"email": "Invalid email"}

    email: EmailStr = ""

    @field_validator("email", mode="before")
    @classmethod
    def email_present(cls, v: Any) -> Any:
        return _require(v, "Email is required")


class SinpePaymentData(PaymentFields):
    INVALID_MESSAGES: ClassVar[dict[str, str]] = {
        "phone": "Invalid phone number (8 digits, no dashes)",
        "national_id": "Invalid national id (9 digits, no dashes)",
    }

    phone: str = ""
    national_id: str = ""

    @field_validator("phone")
    @classmethod
    def costa_rican_phone(cls, v: str) -> str:
        if not re.fullmatch(r"\d{8}", v):
            raise ValueError("Invalid phone number (8 digits, no dashes)")
        if v[0] not in VALID_PHONE_FIRST_DIGITS:
            raise ValueError("Phone number is not valid in Costa Rica")
        return v

    @field_validator("national_id")
    @classmethod
    def valid_national_id(cls, v: str) -> str:
        if not re.fullmatch(r"\d{9}", v):
            raise ValueError("Invalid national id (9 digits, no dashes)")
        return v


class BitcoinPaymentData(PaymentFields):
    INVALID_MESSAGES: ClassVar[dict[str, str]] = {
        "email": "Invalid email",
        "wallet": "Invalid Bitcoin wallet address",
    }

    email: EmailStr = ""
    wallet: str | None = None

    @field_validator("email", mode="before")
    @classmethod
    def email_present(cls, v: Any) -> Any:
        return _require(v, "Email is required for notifications")

    @field_validator("wallet")
    @classmethod
    def valid_wallet(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        v = v.strip()
        if not valid_btc_address(v):
            raise ValueError("Invalid Bitcoin wallet address")
        return v


class BankTransferPaymentData(PaymentFields):
    INVALID_MESSAGES: ClassVar[dict[str, str]] = {
        "customer_name": "Full name is required",
        "email": "Invalid email",
    }

    customer_name: str = ""
    email: EmailStr = ""

    @field_validator("customer_name")
    @classmethod
    def full_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 3:
            raise ValueError("Full name is required")
        return v

    @field_validator("email", mode="before")
    @classmethod
    def email_present(cls, v: Any) -> Any:
        return _require(v, "Email is required")


# ----- Processing results -----


class PaymentTotals(SQLModel):
    subtotal: float
    fee: float
    total: float


class PaymentResult(SQLModel):
    """
    Outcome of a payment attempt.

    On success, `details` carries the method-specific follow-up data
    (redirect URL, transfer reference, SINPE code, BTC address...).
    """

    success: bool
    message: str
    step: str | None = None
    errors: list[str] = Field(default_factory=list)
    transaction_id: str | None = None
    method: str | None = None
    amount: float | None = None
    totals: PaymentTotals | None = None
    requires_redirect: bool = False
    requires_confirmation: bool = False
    details: dict[str, Any] = Field(default_factory=dict)


# ----- Checkout API -----


class PaymentData(SQLModel):
    """
    Every field any payment method may ask for.

    Which ones are required, and how they are checked, depends on the
    chosen method (see PaymentMethodInfo.fields). Unknown keys are rejected.
    """

    model_config = ConfigDict(extra="forbid")

    holder: str | None = None
    card_number: str | None = None
    expiry: str | None = None
    cvv: str | None = None
    email: str | None = None
    phone: str | None = None
    national_id: str | None = None
    wallet: str | None = None
    customer_name: str | None = None


class CheckoutRequest(SQLModel):
    """
    Payload for POST /checkout.
    """

    model_config = ConfigDict(extra="forbid")

    payment_method: str
    data: PaymentData = Field(default_factory=PaymentData)


class CheckoutResponse(SQLModel):
    payment: PaymentResult
    summary: CartSummary
