"""Repositories over the SQLAlchemy record store"""

from .document_repository import DocumentRepository, parse_document_id

__all__ = ["DocumentRepository", "parse_document_id"]
