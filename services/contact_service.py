"""
Contacts service: payment receivers saved by the user
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from fastapi import Depends

from schemas.contact import ContactCreate, ContactUpdate
from services.document_store import DocumentStore, get_document_store
from utils.errors import ConflictError, NotFoundError
from utils.identifiers import generate_entity_id

logger = logging.getLogger(__name__)

COLLECTION = "contacts"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ContactService:
    def __init__(self, store: DocumentStore, clock: Callable[[], datetime] = _utcnow):
        self.store = store
        self.clock = clock

    async def list_contacts(self) -> List[Dict[str, Any]]:
        return await self.store.get_all(COLLECTION)

    async def get_contact(self, contact_id: str) -> Dict[str, Any]:
        contact = await self.store.get_by_id(COLLECTION, contact_id, contact_id)
        if contact is None:
            raise NotFoundError("Contact not found")
        return contact

    async def create_contact(self, data: ContactCreate) -> Dict[str, Any]:
        await self._check_unique_address(data.receiver_address)

        now = self.clock().isoformat()
        contact = {
            **data.model_dump(by_alias=True),
            "id": generate_entity_id("CNT"),
            "createdAt": now,
            "updatedAt": now,
        }
        created = await self.store.create(COLLECTION, contact)
        logger.info("Created contact %s", created["id"])
        return created

    async def update_contact(self, contact_id: str, data: ContactUpdate) -> Dict[str, Any]:
        """
        Apply a partial update. A concurrent edit of the same contact makes
        this call fail with ConflictError instead of overwriting it.
        """
        contact = await self.get_contact(contact_id)
        changes = data.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)

        address = changes.get("receiverAddress")
        if address and address.lower() != contact["receiverAddress"].lower():
            await self._check_unique_address(address, exclude_id=contact_id)

        updated = {**contact, **changes, "updatedAt": self.clock().isoformat()}
        return await self.store.replace(
            COLLECTION, contact_id, contact_id, updated, expected_version=contact["version"]
        )

    async def delete_contact(self, contact_id: str) -> None:
        try:
            await self.store.delete(COLLECTION, contact_id, contact_id)
        except NotFoundError:
            raise NotFoundError("Contact not found")
        logger.info("Deleted contact %s", contact_id)

    async def _check_unique_address(
        self, address: str, exclude_id: Optional[str] = None
    ) -> None:
        for existing in await self.store.get_all(COLLECTION):
            if existing["id"] == exclude_id:
                continue
            if existing["receiverAddress"].lower() == address.lower():
                raise ConflictError(
                    f"A contact with this address already exists: {existing['name']}"
                )


def get_contact_service(
    store: DocumentStore = Depends(get_document_store),
) -> ContactService:
    return ContactService(store)
