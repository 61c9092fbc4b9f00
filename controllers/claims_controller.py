"""
Claims management controller
"""

from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from schemas.claim import (
    ClaimCreate,
    ClaimPaymentsResponse,
    ClaimResponse,
    ClaimStatus,
    PaymentCreate,
    StatusUpdate,
)
from services.claim_lifecycle import ClaimLifecycleService, get_claim_service

router = APIRouter()


@router.get("", response_model=List[ClaimResponse])
async def list_claims(
    status: Optional[ClaimStatus] = Query(None, description="Filter by status"),
    service: ClaimLifecycleService = Depends(get_claim_service),
):
    """
    List all claims
    """
    return await service.list_claims(status=status.value if status else None)


@router.post("", response_model=ClaimResponse, status_code=201)
async def create_claim(
    claim_data: ClaimCreate,
    service: ClaimLifecycleService = Depends(get_claim_service),
):
    """
    Create a new pending claim
    """
    return await service.create_claim(claim_data)


@router.get("/{claim_id}", response_model=ClaimResponse)
async def get_claim(
    claim_id: str,
    service: ClaimLifecycleService = Depends(get_claim_service),
):
    """
    Get claim details by ID
    """
    return await service.get_claim(claim_id)


@router.post("/{claim_id}/payments", response_model=ClaimResponse, status_code=201)
async def add_payment(
    claim_id: str,
    payment_data: PaymentCreate,
    service: ClaimLifecycleService = Depends(get_claim_service),
):
    """
    Record a payment against a claim and return the updated claim
    """
    return await service.record_payment(claim_id, payment_data)


@router.get("/{claim_id}/payments", response_model=ClaimPaymentsResponse)
async def list_payments(
    claim_id: str,
    status: Optional[str] = Query(None, description="Filter by payment status"),
    service: ClaimLifecycleService = Depends(get_claim_service),
):
    payments = await service.list_payments(claim_id, status=status)
    return {"claimId": claim_id, "payments": payments, "total": len(payments)}


@router.post("/{claim_id}/status", response_model=ClaimResponse)
async def update_status(
    claim_id: str,
    status_update: StatusUpdate,
    service: ClaimLifecycleService = Depends(get_claim_service),
):
    """
    Move a claim along its status graph
    """
    return await service.transition_status(claim_id, status_update.status)
