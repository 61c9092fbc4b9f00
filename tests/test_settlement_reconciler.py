from decimal import Decimal

import pytest

from schemas.claim import InvoiceCreate, PaymentCreate, PaymentExecutedEvent
from services.settlement_reconciler import SettlementReconciler
from utils.errors import ValidationError


async def test_dispatches_to_owning_collection(claim_service, invoice_service):
    invoice = await invoice_service.create_claim(InvoiceCreate(walletId="0xabc"))
    invoice = await invoice_service.record_payment(invoice["id"], PaymentCreate(amount=75))
    payment_id = invoice["payments"][0]["id"]

    reconciler = SettlementReconciler({"claims": claim_service, "invoices": invoice_service})
    updated = await reconciler.apply_event(
        PaymentExecutedEvent(
            collection="invoices",
            recordId=invoice["id"],
            paymentId=payment_id,
            executedPrice=Decimal("1.5"),
            paidAmount=Decimal("50"),
        )
    )

    assert updated["payments"][0]["executed"] is True
    assert updated["totalCost"] == 75


async def test_unregistered_collection(claim_service):
    reconciler = SettlementReconciler({"claims": claim_service})
    event = PaymentExecutedEvent(
        collection="invoices",
        recordId="INV-X-0000",
        paymentId="PAY-X-0000",
        executedPrice=1,
        paidAmount=1,
    )

    with pytest.raises(ValidationError):
        await reconciler.apply_event(event)
