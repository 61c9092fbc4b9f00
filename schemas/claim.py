"""
Claim, invoice and payment Pydantic schemas for request/response validation
"""

from enum import Enum
from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel, to_snake
from typing import Optional, Dict, Any, List
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation

# Configurable rules:
MAX_DIGITS = 12  # total digits (integer + fractional) allowed
DECIMAL_PLACES = 2  # decimal places to quantize to
QUANT = Decimal("0.01")  # Decimal('0.01') for 2 places

# Fields only the server may set on a claim or invoice
RESERVED_FIELDS = {
    "id",
    "status",
    "totalCost",
    "payments",
    "dateCreated",
    "dateSettled",
    "version",
}
# Snake-case spellings are reserved too
RESERVED_FIELDS |= {to_snake(name) for name in RESERVED_FIELDS}


class ClaimStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"
    PAID = "paid"
    CLOSED = "closed"


class PaymentStatus(str, Enum):
    PENDING_SIGNATURE = "pending_signature"
    EXECUTED = "executed"


def _enforce_decimal_value(value) -> Decimal:
    """
    Convert input to Decimal, quantize to DECIMAL_PLACES, enforce >= 0 and max digits.
    Accepts str, int, float, Decimal.
    """
    if value is None:
        return value
    if isinstance(value, bool):
        raise ValueError("value is not a valid decimal")
    try:
        d = Decimal(str(value))
    except (InvalidOperation, TypeError):
        raise ValueError("value is not a valid decimal")

    if not d.is_finite():
        raise ValueError("value is not a valid decimal")

    # round / quantize to required decimal places
    d = d.quantize(QUANT, rounding=ROUND_HALF_UP)

    # non-negative check
    if d < Decimal("0"):
        raise ValueError("value must be >= 0")

    # check total digits (remove sign and decimal point)
    s = f"{d:.{DECIMAL_PLACES}f}".replace("-", "").replace(".", "")
    if len(s) > MAX_DIGITS:
        raise ValueError(f"value has too many digits (max {MAX_DIGITS})")

    return d


def _normalize_wallet_id(value):
    # wallet addresses are case-insensitive
    if not isinstance(value, str):
        return value
    value = value.strip().lower()
    if not value:
        raise ValueError("Wallet ID is required")
    return value


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RecordCreateBase(CamelModel):
    """
    Caller-supplied fields of a new claim or invoice.

    Unknown keys are moved into ``metadata``; server-owned keys are rejected.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="forbid"
    )

    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    claimant_name: Optional[str] = Field(None, max_length=255)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _route_unknown_fields(cls, data):
        if not isinstance(data, dict):
            return data

        reserved = RESERVED_FIELDS.intersection(data)
        if reserved:
            raise ValueError(
                f"fields are set by the server: {', '.join(sorted(reserved))}"
            )

        known = set()
        for name, field in cls.model_fields.items():
            known.add(name)
            if field.alias:
                known.add(field.alias)

        routed = {key: value for key, value in data.items() if key in known}
        extras = {key: value for key, value in data.items() if key not in known}
        if extras:
            metadata = routed.get("metadata") or {}
            if not isinstance(metadata, dict):
                raise ValueError("metadata must be an object")
            routed["metadata"] = {**metadata, **extras}
        return routed


class ClaimCreate(RecordCreateBase):
    line_of_business: Optional[str] = Field(None, max_length=100)  # Auto, Health, ...


class InvoiceCreate(RecordCreateBase):
    type: Optional[str] = Field(None, max_length=100)
    wallet_id: str = Field(..., min_length=1, max_length=255)

    @field_validator("wallet_id", mode="before")
    @classmethod
    def _normalize_wallet(cls, v):
        return _normalize_wallet_id(v)


class RecordUpdateBase(CamelModel):
    """Descriptive fields of an existing record; lifecycle fields change elsewhere."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="forbid"
    )

    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    claimant_name: Optional[str] = Field(None, max_length=255)


class InvoiceUpdate(RecordUpdateBase):
    type: Optional[str] = Field(None, max_length=100)


class PaymentCreate(CamelModel):
    amount: Decimal = Field(
        ..., validation_alias=AliasChoices("amount", "usdAmount")
    )
    payer: Optional[str] = Field(None, max_length=255)
    receiver: Optional[str] = Field(None, max_length=255)
    crypto_feed_id: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    payment_type: Optional[str] = Field(None, max_length=50)

    @field_validator("amount", mode="before")
    @classmethod
    def _validate_amount(cls, v):
        d = _enforce_decimal_value(v)
        if d is None or d <= Decimal("0"):
            raise ValueError("amount must be greater than 0")
        return d


class InvoicePaymentCreate(PaymentCreate):
    wallet_id: str = Field(..., min_length=1, max_length=255)

    @field_validator("wallet_id", mode="before")
    @classmethod
    def _normalize_wallet(cls, v):
        return _normalize_wallet_id(v)


class StatusUpdate(CamelModel):
    status: ClaimStatus


class PaymentResponse(CamelModel):
    id: str
    amount: float
    status: PaymentStatus
    payer: Optional[str] = None
    receiver: Optional[str] = None
    crypto_feed_id: Optional[str] = None
    description: Optional[str] = None
    payment_type: Optional[str] = None
    executed: bool = False
    created_at: datetime
    executed_at: Optional[datetime] = None
    executed_price: Optional[float] = None
    paid_amount: Optional[float] = None


class RecordResponseBase(CamelModel):
    id: str
    status: ClaimStatus
    total_cost: float
    payments: List[PaymentResponse]
    date_created: str
    date_settled: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    claimant_name: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    version: int


class ClaimResponse(RecordResponseBase):
    line_of_business: Optional[str] = None


class InvoiceResponse(RecordResponseBase):
    type: Optional[str] = None
    wallet_id: str


class ClaimPaymentsResponse(CamelModel):
    claim_id: str
    payments: List[PaymentResponse]
    total: int


class InvoicePaymentsResponse(CamelModel):
    invoice_id: str
    payments: List[PaymentResponse]
    total: int


class InvoicePaymentCreatedResponse(CamelModel):
    success: bool = True
    payment: PaymentResponse
    invoice_id: str
    message: str


class PaymentExecutedEvent(CamelModel):
    """Payment execution observed on chain and relayed by the keeper."""

    collection: str = Field(..., pattern="^(claims|invoices)$")
    record_id: str = Field(..., min_length=1)
    payment_id: str = Field(..., min_length=1)
    executed_price: Decimal = Field(..., ge=0)
    paid_amount: Decimal = Field(..., ge=0)
    executed_at: Optional[datetime] = None


class ExtractedInvoiceFields(CamelModel):
    title: str
    description: str
    claimant_name: str
    type: str


class ExtractionResponse(CamelModel):
    success: bool = True
    data: ExtractedInvoiceFields
