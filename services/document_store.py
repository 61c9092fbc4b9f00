"""
Document store gateway over the async SQLAlchemy engine
"""

import copy
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update, delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from database.connection import AsyncSessionLocal
from models.document import Document
from utils.errors import ConflictError, NotFoundError, PersistenceError

logger = logging.getLogger(__name__)

# Keys owned by the document row rather than the JSON body
ROW_FIELDS = ("id", "version")


class DocumentStore:
    """
    Collection/id keyed JSON document store.

    Each call runs in its own session and transaction. Records are returned as
    plain dicts: the stored body plus ``id`` and ``version``.
    """

    def __init__(self, session_factory: async_sessionmaker = AsyncSessionLocal):
        self._session_factory = session_factory

    async def get_all(self, collection: str) -> List[Dict[str, Any]]:
        return await self.query(collection)

    async def query(self, collection: str, **filters: Any) -> List[Dict[str, Any]]:
        """List a collection, keeping documents whose body matches every filter."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(Document)
                    .where(Document.collection == collection)
                    .order_by(Document.created_at, Document.id)
                )
                documents = result.scalars().all()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to list {collection}: {e}") from e

        records = [doc.to_dict() for doc in documents]
        if filters:
            records = [
                record
                for record in records
                if all(record.get(key) == value for key, value in filters.items())
            ]
        return records

    async def get_by_id(
        self, collection: str, partition_key: str, id: str
    ) -> Optional[Dict[str, Any]]:
        """Return the record or None when it does not exist."""
        try:
            async with self._session_factory() as session:
                document = await self._fetch(session, collection, partition_key, id)
                return document.to_dict() if document else None
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to read {collection}/{id}: {e}") from e

    async def create(
        self, collection: str, record: Dict[str, Any], partition_key: Optional[str] = None
    ) -> Dict[str, Any]:
        """Insert a new document. An existing (collection, id) raises ConflictError."""
        record_id = record.get("id")
        if not record_id:
            raise ValueError("record must carry an id")

        document = Document(
            collection=collection,
            id=record_id,
            partition_key=partition_key or record_id,
            body=_body_of(record),
            version=1,
        )
        try:
            async with self._session_factory() as session:
                session.add(document)
                await session.commit()
        except IntegrityError as e:
            raise ConflictError(f"{collection} record {record_id} already exists") from e
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to create {collection}/{record_id}: {e}") from e

        logger.debug("Created %s/%s", collection, record_id)
        return document.to_dict()

    async def replace(
        self,
        collection: str,
        partition_key: str,
        id: str,
        record: Dict[str, Any],
        expected_version: int,
    ) -> Dict[str, Any]:
        """
        Overwrite a document only if its version is still ``expected_version``.

        Raises ConflictError when another writer got there first and
        NotFoundError when the document is gone.
        """
        body = _body_of(record)
        new_version = expected_version + 1
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    update(Document)
                    .where(
                        Document.collection == collection,
                        Document.id == id,
                        Document.partition_key == partition_key,
                        Document.version == expected_version,
                    )
                    .values(body=body, version=new_version)
                )
                await session.commit()
                updated = result.rowcount
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to replace {collection}/{id}: {e}") from e

        if updated == 0:
            if await self.get_by_id(collection, partition_key, id) is None:
                raise NotFoundError(f"{collection} record {id} not found")
            raise ConflictError(
                f"{collection} record {id} changed since version {expected_version}"
            )

        return {**body, "id": id, "version": new_version}

    async def delete(self, collection: str, partition_key: str, id: str) -> None:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    delete(Document).where(
                        Document.collection == collection,
                        Document.id == id,
                        Document.partition_key == partition_key,
                    )
                )
                await session.commit()
                deleted = result.rowcount
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to delete {collection}/{id}: {e}") from e

        if deleted == 0:
            raise NotFoundError(f"{collection} record {id} not found")

    async def _fetch(
        self, session: AsyncSession, collection: str, partition_key: str, id: str
    ) -> Optional[Document]:
        result = await session.execute(
            select(Document).where(
                Document.collection == collection,
                Document.id == id,
                Document.partition_key == partition_key,
            )
        )
        return result.scalar_one_or_none()


def _body_of(record: Dict[str, Any]) -> Dict[str, Any]:
    body = copy.deepcopy(record)
    for key in ROW_FIELDS:
        body.pop(key, None)
    return body


def get_document_store() -> DocumentStore:
    """FastAPI dependency returning the store bound to the application engine."""
    return DocumentStore(AsyncSessionLocal)
