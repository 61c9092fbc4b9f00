"""
Claim lifecycle engine

Owns every server-side invariant of a claim (or invoice) record: id
generation, default fields, the status transition graph, and keeping
totalCost equal to the sum of the payment amounts.
"""

import asyncio
import logging
import random
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

from fastapi import Depends

from schemas.claim import (
    ClaimStatus,
    PaymentCreate,
    PaymentStatus,
    QUANT,
    RecordCreateBase,
    RecordUpdateBase,
)
from services.document_store import DocumentStore, get_document_store
from utils.config import settings
from utils.errors import (
    ConflictError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
)
from utils.identifiers import generate_entity_id

logger = logging.getLogger(__name__)

# Legal status graph (from_status -> allowed next statuses)
TRANSITIONS: Dict[ClaimStatus, set] = {
    ClaimStatus.PENDING: {ClaimStatus.APPROVED, ClaimStatus.DENIED},
    ClaimStatus.APPROVED: {ClaimStatus.PAID, ClaimStatus.DENIED},
    ClaimStatus.PAID: {ClaimStatus.CLOSED},
    ClaimStatus.DENIED: {ClaimStatus.CLOSED},
    ClaimStatus.CLOSED: set(),  # Terminal state
}

# Statuses that still accept new payments
PAYABLE_STATUSES = {ClaimStatus.PENDING, ClaimStatus.APPROVED}

PAYMENT_ID_PREFIX = "PAY"


def can_transition(current: ClaimStatus, target: ClaimStatus) -> bool:
    return target in TRANSITIONS.get(current, set())


def compute_total_cost(payments: List[Dict[str, Any]]) -> float:
    """Sum payment amounts in Decimal to avoid float drift."""
    total = sum((Decimal(str(p.get("amount", 0))) for p in payments), Decimal("0"))
    return float(total.quantize(QUANT))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ClaimLifecycleService:
    """
    Lifecycle operations for one collection of claim-shaped records.

    Claims and invoices share this engine; they differ in collection name,
    id prefix and whether records are owned by a wallet.
    """

    def __init__(
        self,
        store: DocumentStore,
        collection: str = "claims",
        id_prefix: str = "CLM",
        entity_name: str = "Claim",
        max_write_retries: Optional[int] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.collection = collection
        self.id_prefix = id_prefix
        self.entity_name = entity_name
        self.max_write_retries = (
            settings.max_write_retries if max_write_retries is None else max_write_retries
        )
        self.clock = clock

    async def create_claim(self, data: RecordCreateBase) -> Dict[str, Any]:
        """Build a new pending record from validated input and persist it."""
        fields = data.model_dump(by_alias=True, exclude_none=True)
        record = {
            **fields,
            "id": generate_entity_id(self.id_prefix),
            "status": ClaimStatus.PENDING.value,
            "totalCost": 0,
            "payments": [],
            "dateCreated": self.clock().date().isoformat(),
        }

        created = await self.store.create(self.collection, record, partition_key=record["id"])
        logger.info("Created %s %s", self.entity_name.lower(), created["id"])
        return created

    async def get_claim(self, claim_id: str) -> Dict[str, Any]:
        # id doubles as the partition key
        record = await self.store.get_by_id(self.collection, claim_id, claim_id)
        if record is None:
            raise NotFoundError(f"{self.entity_name} not found")
        return record

    async def list_claims(self, **filters: Any) -> List[Dict[str, Any]]:
        filters = {key: value for key, value in filters.items() if value is not None}
        return await self.store.query(self.collection, **filters)

    async def delete_claim(self, claim_id: str) -> None:
        try:
            await self.store.delete(self.collection, claim_id, claim_id)
        except NotFoundError:
            raise NotFoundError(f"{self.entity_name} not found")
        logger.info("Deleted %s %s", self.entity_name.lower(), claim_id)

    async def record_payment(
        self, claim_id: str, payment: PaymentCreate, wallet_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Append a payment and recompute totalCost.

        The returned record's last payment is the one just recorded.
        """
        new_payment = {
            **payment.model_dump(by_alias=True, exclude_none=True, exclude={"wallet_id"}),
            "id": generate_entity_id(PAYMENT_ID_PREFIX),
            "amount": float(payment.amount),
            "status": PaymentStatus.PENDING_SIGNATURE.value,
            "executed": False,
            "createdAt": self.clock().isoformat(),
        }
        if wallet_id and not new_payment.get("payer"):
            new_payment["payer"] = wallet_id

        def append(record: Dict[str, Any]) -> Dict[str, Any]:
            status = ClaimStatus(record["status"])
            if status not in PAYABLE_STATUSES:
                raise ConflictError(
                    f"Payments cannot be added to a {status.value} {self.entity_name.lower()}"
                )
            taken = {p.get("id") for p in record.get("payments", [])}
            while new_payment["id"] in taken:
                new_payment["id"] = generate_entity_id(PAYMENT_ID_PREFIX)
            payments = [*record.get("payments", []), new_payment]
            return {**record, "payments": payments, "totalCost": compute_total_cost(payments)}

        updated = await self._update(claim_id, append, wallet_id=wallet_id)
        logger.info(
            "Recorded payment %s of %s on %s %s",
            new_payment["id"],
            new_payment["amount"],
            self.entity_name.lower(),
            claim_id,
        )
        return updated

    async def update_details(self, claim_id: str, data: RecordUpdateBase) -> Dict[str, Any]:
        """Change descriptive fields only; status, payments and totals are untouched."""
        changes = data.model_dump(by_alias=True, exclude_unset=True)

        def apply(record: Dict[str, Any]) -> Optional[Dict[str, Any]]:
            if all(record.get(key) == value for key, value in changes.items()):
                return None
            return {**record, **changes}

        return await self._update(claim_id, apply)

    async def list_payments(
        self,
        claim_id: str,
        status: Optional[str] = None,
        wallet_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        record = await self.get_claim(claim_id)
        self._check_owner(record, wallet_id)
        payments = record.get("payments", [])
        if status:
            payments = [p for p in payments if p.get("status") == status]
        return payments

    async def transition_status(self, claim_id: str, target: ClaimStatus) -> Dict[str, Any]:
        target = ClaimStatus(target)

        def apply(record: Dict[str, Any]) -> Dict[str, Any]:
            current = ClaimStatus(record["status"])
            if not can_transition(current, target):
                raise InvalidTransitionError(current.value, target.value)
            changes = {"status": target.value}
            if target == ClaimStatus.PAID:
                changes["dateSettled"] = self.clock().date().isoformat()
            return {**record, **changes}

        updated = await self._update(claim_id, apply)
        logger.info(
            "%s %s moved to %s", self.entity_name, claim_id, target.value
        )
        return updated

    async def mark_payment_executed(
        self,
        claim_id: str,
        payment_id: str,
        executed_price: Decimal,
        paid_amount: Decimal,
        executed_at: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """Mark one payment as executed on chain. Repeated events are no-ops."""
        executed_at = executed_at or self.clock()

        def apply(record: Dict[str, Any]) -> Optional[Dict[str, Any]]:
            payments = list(record.get("payments", []))
            for index, existing in enumerate(payments):
                if existing.get("id") == payment_id:
                    break
            else:
                raise NotFoundError(f"Payment {payment_id} not found")

            if existing.get("executed"):
                return None

            payments[index] = {
                **existing,
                "status": PaymentStatus.EXECUTED.value,
                "executed": True,
                "executedAt": executed_at.isoformat(),
                "executedPrice": float(executed_price),
                "paidAmount": float(paid_amount),
            }
            return {**record, "payments": payments, "totalCost": compute_total_cost(payments)}

        return await self._update(claim_id, apply)

    async def _update(
        self,
        claim_id: str,
        mutate: Callable[[Dict[str, Any]], Optional[Dict[str, Any]]],
        wallet_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Read-modify-write with the document version as compare-and-swap token.

        ``mutate`` returns the new record, or None to leave it unchanged. On a
        version conflict the record is re-read and ``mutate`` applied again.
        """
        for attempt in range(self.max_write_retries + 1):
            record = await self.get_claim(claim_id)
            self._check_owner(record, wallet_id)

            updated = mutate(record)
            if updated is None:
                return record

            try:
                return await self.store.replace(
                    self.collection,
                    claim_id,
                    claim_id,
                    updated,
                    expected_version=record["version"],
                )
            except ConflictError:
                logger.debug(
                    "Write conflict on %s %s (attempt %d)",
                    self.entity_name.lower(),
                    claim_id,
                    attempt + 1,
                )
                await asyncio.sleep(random.uniform(0, 0.002 * (attempt + 1)))

        logger.warning(
            "Giving up on %s %s after %d conflicting writes",
            self.entity_name.lower(),
            claim_id,
            self.max_write_retries + 1,
        )
        raise ConflictError(
            f"{self.entity_name} {claim_id} is being modified concurrently, try again"
        )

    def _check_owner(self, record: Dict[str, Any], wallet_id: Optional[str]) -> None:
        if wallet_id is None:
            return
        owner = (record.get("walletId") or "").lower()
        if owner != wallet_id.lower():
            raise ForbiddenError(
                f"Unauthorized: {self.entity_name} does not belong to this wallet"
            )


def get_claim_service(
    store: DocumentStore = Depends(get_document_store),
) -> ClaimLifecycleService:
    return ClaimLifecycleService(store)


def get_invoice_service(
    store: DocumentStore = Depends(get_document_store),
) -> ClaimLifecycleService:
    return ClaimLifecycleService(
        store, collection="invoices", id_prefix="INV", entity_name="Invoice"
    )
