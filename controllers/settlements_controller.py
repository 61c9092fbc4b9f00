"""
Settlement events controller

Receives payment executions observed on chain by the keeper.
"""

from fastapi import APIRouter, Depends
from typing import Any, Dict

from schemas.claim import PaymentExecutedEvent
from services.settlement_reconciler import (
    SettlementReconciler,
    get_settlement_reconciler,
)

router = APIRouter()


@router.post("/events")
async def apply_payment_event(
    event: PaymentExecutedEvent,
    reconciler: SettlementReconciler = Depends(get_settlement_reconciler),
) -> Dict[str, Any]:
    """
    Mark a payment executed on its claim or invoice and return the record
    """
    return await reconciler.apply_event(event)
