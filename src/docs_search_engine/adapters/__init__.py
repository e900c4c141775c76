"""Adapters layer - bringing external document records into the domain."""

from .scan_result import (
    PreparedDocuments,
    coerce_document,
    derive_doc_id,
    document_from_path,
    documents_from_scan_result,
    prepare_documents,
    scan_files,
)


__all__ = [
    "PreparedDocuments",
    "coerce_document",
    "derive_doc_id",
    "document_from_path",
    "documents_from_scan_result",
    "prepare_documents",
    "scan_files",
]
