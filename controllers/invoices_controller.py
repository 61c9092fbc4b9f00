"""
Invoices controller

Invoices follow the claim lifecycle but are scoped to the wallet that owns
them.
"""

import logging
from fastapi import APIRouter, Depends, File, Query, UploadFile
from typing import List, Optional

from schemas.claim import (
    ExtractionResponse,
    InvoiceCreate,
    InvoicePaymentCreate,
    InvoicePaymentCreatedResponse,
    InvoicePaymentsResponse,
    InvoiceResponse,
    InvoiceUpdate,
    StatusUpdate,
)
from services.claim_lifecycle import ClaimLifecycleService, get_invoice_service
from services.mock_extraction_service import mock_extraction_service
from utils.errors import ValidationError

logger = logging.getLogger(__name__)

router = APIRouter()


def _require_wallet(wallet_id: Optional[str]) -> str:
    if not wallet_id or not wallet_id.strip():
        raise ValidationError("Wallet ID is required")
    return wallet_id.strip().lower()


@router.get("", response_model=List[InvoiceResponse])
async def list_invoices(
    wallet_id: Optional[str] = Query(
        None, alias="walletId", description="Owning wallet address"
    ),
    service: ClaimLifecycleService = Depends(get_invoice_service),
):
    """
    List the invoices of one wallet
    """
    return await service.list_claims(walletId=_require_wallet(wallet_id))


@router.post("", response_model=InvoiceResponse, status_code=201)
async def create_invoice(
    invoice_data: InvoiceCreate,
    service: ClaimLifecycleService = Depends(get_invoice_service),
):
    """
    Create a new pending invoice
    """
    return await service.create_claim(invoice_data)


@router.post("/process", response_model=ExtractionResponse)
async def process_invoice_document(file: Optional[UploadFile] = File(None)):
    """
    Extract invoice fields from an uploaded document (mock implementation)
    """
    if file is None or not file.filename:
        raise ValidationError("No file uploaded")

    logger.info("Processing file: %s (%s)", file.filename, file.content_type)
    data = mock_extraction_service.extract_invoice_fields(
        file.filename, file.content_type
    )
    return {"success": True, "data": data}


@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(
    invoice_id: str,
    service: ClaimLifecycleService = Depends(get_invoice_service),
):
    return await service.get_claim(invoice_id)


@router.put("/{invoice_id}", response_model=InvoiceResponse)
async def update_invoice(
    invoice_id: str,
    invoice_data: InvoiceUpdate,
    service: ClaimLifecycleService = Depends(get_invoice_service),
):
    """
    Update an invoice's descriptive fields
    """
    return await service.update_details(invoice_id, invoice_data)


@router.delete("/{invoice_id}")
async def delete_invoice(
    invoice_id: str,
    service: ClaimLifecycleService = Depends(get_invoice_service),
):
    await service.delete_claim(invoice_id)
    return {"success": True}


@router.post(
    "/{invoice_id}/payments",
    response_model=InvoicePaymentCreatedResponse,
    status_code=201,
)
async def add_invoice_payment(
    invoice_id: str,
    payment_data: InvoicePaymentCreate,
    service: ClaimLifecycleService = Depends(get_invoice_service),
):
    """
    Add a payment awaiting the wallet owner's signature
    """
    wallet_id = _require_wallet(payment_data.wallet_id)
    invoice = await service.record_payment(invoice_id, payment_data, wallet_id=wallet_id)
    return {
        "success": True,
        "payment": invoice["payments"][-1],
        "invoiceId": invoice_id,
        "message": "Payment added to invoice. User must sign the transaction to execute.",
    }


@router.get("/{invoice_id}/payments", response_model=InvoicePaymentsResponse)
async def list_invoice_payments(
    invoice_id: str,
    wallet_id: Optional[str] = Query(None, alias="walletId"),
    status: Optional[str] = Query(None, description="Filter by payment status"),
    service: ClaimLifecycleService = Depends(get_invoice_service),
):
    payments = await service.list_payments(
        invoice_id, status=status, wallet_id=_require_wallet(wallet_id)
    )
    return {"invoiceId": invoice_id, "payments": payments, "total": len(payments)}


@router.post("/{invoice_id}/status", response_model=InvoiceResponse)
async def update_invoice_status(
    invoice_id: str,
    status_update: StatusUpdate,
    service: ClaimLifecycleService = Depends(get_invoice_service),
):
    return await service.transition_status(invoice_id, status_update.status)
