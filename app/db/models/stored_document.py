from sqlalchemy import Column, Text, Integer, DateTime, JSON, Index
from sqlalchemy.sql import func
from app.db.base_class import Base


class StoredDocument(Base):
    """One document of any collection; the path is its identity."""

    __tablename__ = "store_documents"

    path = Column(Text, primary_key=True)
    collection = Column(Text, nullable=False)
    doc_id = Column(Text, nullable=False)
    data = Column(JSON, nullable=False)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp())
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp())

    __table_args__ = (Index("ix_store_documents_collection", "collection"),)
