"""
Document data model

Every record of every collection (claims, invoices, contacts) is stored as a
JSON body keyed by (collection, id), with a version column used as the
optimistic-concurrency token.
"""

from sqlalchemy import Column, String, Integer, DateTime, JSON, Index
from sqlalchemy.sql import func
from database.connection import Base


class Document(Base):
    __tablename__ = "documents"

    collection = Column(String(100), primary_key=True)
    id = Column(String(100), primary_key=True)
    partition_key = Column(String(255), nullable=False)
    body = Column(JSON, nullable=False)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (Index("ix_documents_partition", "collection", "partition_key"),)

    def to_dict(self):
        return {**self.body, "id": self.id, "version": self.version}
