"""
Applies on-chain payment executions, relayed by the keeper, to the claim or
invoice that owns the payment.
"""

import logging
from typing import Any, Dict, Mapping

from fastapi import Depends

from schemas.claim import PaymentExecutedEvent
from services.claim_lifecycle import (
    ClaimLifecycleService,
    get_claim_service,
    get_invoice_service,
)
from utils.errors import ValidationError

logger = logging.getLogger(__name__)


class SettlementReconciler:
    def __init__(self, services: Mapping[str, ClaimLifecycleService]):
        self.services = dict(services)

    async def apply_event(self, event: PaymentExecutedEvent) -> Dict[str, Any]:
        service = self.services.get(event.collection)
        if service is None:
            raise ValidationError(f"Unknown collection: {event.collection}")

        logger.info(
            "Payment %s executed on %s/%s (paid %s at price %s)",
            event.payment_id,
            event.collection,
            event.record_id,
            event.paid_amount,
            event.executed_price,
        )
        return await service.mark_payment_executed(
            event.record_id,
            event.payment_id,
            executed_price=event.executed_price,
            paid_amount=event.paid_amount,
            executed_at=event.executed_at,
        )


def get_settlement_reconciler(
    claims: ClaimLifecycleService = Depends(get_claim_service),
    invoices: ClaimLifecycleService = Depends(get_invoice_service),
) -> SettlementReconciler:
    return SettlementReconciler({claims.collection: claims, invoices.collection: invoices})
