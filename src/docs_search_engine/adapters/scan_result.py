"""Turn directory-scanner output into validated ``Document`` records.

A scanner hands over loosely shaped items: ``Document`` instances, mappings,
objects with matching attributes, or bare paths to markdown files. Everything
is funnelled through ``coerce_document`` so the index only ever sees
``Document``.

Missing ids are derived from the source file name: ``docs/dev/phoenix-setup.md``
becomes ``phoenix_setup``.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
import logging
from pathlib import Path, PurePath
from typing import Any

from pydantic import ValidationError

from docs_search_engine.domain.model import Document, MalformedDocumentError
from docs_search_engine.domain.search import DocumentFailure
from docs_search_engine.utils.front_matter import parse_front_matter


logger = logging.getLogger(__name__)

MARKDOWN_SUFFIX = ".md"

DOCUMENT_FIELDS = (
    "id",
    "title",
    "content",
    "path",
    "category",
    "tags",
    "last_modified",
    "file_path",
    "breadcrumbs",
)


def derive_doc_id(source: str) -> str:
    """Document id for a file or site path: basename without ``.md``, '-' -> '_'."""
    name = PurePath(source).name
    if name.endswith(MARKDOWN_SUFFIX):
        name = name[: -len(MARKDOWN_SUFFIX)]
    return name.replace("-", "_")


def read_markdown(file_path: str | PurePath) -> tuple[dict[str, Any], str]:
    """Read a markdown file and split off its front matter.

    A file that does not exist reads as empty. Other I/O failures are reported
    as ``MalformedDocumentError``.
    """
    path = Path(file_path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.debug("Markdown file %s not found, indexing without content", path)
        return {}, ""
    except (OSError, UnicodeDecodeError) as exc:
        raise MalformedDocumentError(f"Cannot read {path}: {exc}") from exc
    return parse_front_matter(text)


def _field(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def _validated(record: dict[str, Any]) -> Document:
    values = {name: value for name, value in record.items() if value is not None}
    doc_id = values.get("id")
    try:
        return Document(**values)
    except ValidationError as exc:
        errors = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'document'}: {error['msg']}" for error in exc.errors()
        )
        raise MalformedDocumentError(
            f"Invalid document: {errors}",
            doc_id=doc_id if isinstance(doc_id, str) else None,
        ) from exc


def document_from_path(file_path: str | PurePath) -> Document:
    """Build a document from a markdown file, using its front matter for metadata."""
    metadata, body = read_markdown(file_path)
    name = PurePath(file_path).name
    stem = name[: -len(MARKDOWN_SUFFIX)] if name.endswith(MARKDOWN_SUFFIX) else name
    return _validated(
        {
            "id": metadata.get("id") or derive_doc_id(str(file_path)),
            "title": metadata.get("title") or stem,
            "content": body,
            "path": metadata.get("path") or "/" + stem.replace("-", "/"),
            "file_path": str(file_path),
            "category": metadata.get("category"),
            "tags": metadata.get("tags"),
            "last_modified": metadata.get("last_modified"),
        }
    )


def coerce_document(item: Any) -> Document:
    """Normalize one scanner item into a ``Document``.

    Raises:
        MalformedDocumentError: The item has no usable id or fails validation.
    """
    if isinstance(item, Document):
        return item
    if isinstance(item, (str, PurePath)):
        return document_from_path(item)
    if item is None:
        raise MalformedDocumentError("Document record is None")

    record = {name: _field(item, name) for name in DOCUMENT_FIELDS}
    file_path = record["file_path"]

    if not isinstance(record["content"], str) and file_path:
        _, record["content"] = read_markdown(str(file_path))

    doc_id = record["id"]
    if isinstance(doc_id, int) and not isinstance(doc_id, bool):
        record["id"] = str(doc_id)
    elif not doc_id:
        source = file_path or record["path"]
        if not source:
            raise MalformedDocumentError("Document has no id and no file_path or path to derive one from")
        record["id"] = derive_doc_id(str(source))

    if isinstance(file_path, PurePath):
        record["file_path"] = str(file_path)
    return _validated(record)


def scan_files(scan_result: Any) -> list[Any]:
    """Return the item list of a scan result.

    Accepts a mapping or object with a ``files`` collection, or any iterable of
    items. ``None`` is an empty scan.
    """
    if scan_result is None:
        return []
    if isinstance(scan_result, Mapping):
        if "files" not in scan_result:
            raise TypeError("Scan result mapping has no 'files' entry")
        return list(scan_result["files"] or ())
    files = getattr(scan_result, "files", None)
    if files is not None:
        return list(files)
    if isinstance(scan_result, (str, bytes, PurePath)):
        raise TypeError(f"Expected a scan result or a collection of documents, got {type(scan_result).__name__}")
    return list(scan_result)


@dataclass
class PreparedDocuments:
    """Documents that passed validation plus a failure per rejected item."""

    documents: list[Document] = field(default_factory=list)
    failures: list[DocumentFailure] = field(default_factory=list)


def prepare_documents(items: Iterable[Any]) -> PreparedDocuments:
    prepared = PreparedDocuments()
    for position, item in enumerate(items):
        try:
            prepared.documents.append(coerce_document(item))
        except MalformedDocumentError as exc:
            logger.warning("Skipping malformed document at position %d: %s", position, exc.reason)
            prepared.failures.append(DocumentFailure(position=position, reason=exc.reason, doc_id=exc.doc_id))
    return prepared


def documents_from_scan_result(scan_result: Any) -> PreparedDocuments:
    """Validate every item of a scan result."""
    return prepare_documents(scan_files(scan_result))
