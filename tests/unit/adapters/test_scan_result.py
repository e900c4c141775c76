"""Unit tests for turning scanner output into documents."""

from datetime import date, datetime, timezone
from pathlib import Path
from types import SimpleNamespace

import pytest

from docs_search_engine.adapters.scan_result import (
    coerce_document,
    derive_doc_id,
    document_from_path,
    documents_from_scan_result,
    prepare_documents,
    scan_files,
)
from docs_search_engine.domain.model import Document, MalformedDocumentError


@pytest.fixture
def markdown_file(tmp_path: Path) -> Path:
    path = tmp_path / "docs" / "dev" / "phoenix-setup.md"
    path.parent.mkdir(parents=True)
    path.write_text(
        "---\n"
        "title: Phoenix Setup\n"
        "category: dev\n"
        "tags: [phoenix, install]\n"
        "last_modified: 2024-05-01\n"
        "---\n"
        "# Phoenix Setup\n\nInstall Elixir first.\n",
        encoding="utf-8",
    )
    return path


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ("docs/dev/phoenix-setup.md", "phoenix_setup"),
        ("/user/getting-started", "getting_started"),
        ("README.md", "README"),
        ("notes.txt", "notes.txt"),
    ],
)
def test_derive_doc_id(source, expected):
    assert derive_doc_id(source) == expected


class TestCoerceDocument:
    def test_document_passes_through(self):
        document = Document(id="a")

        assert coerce_document(document) is document

    def test_mapping(self):
        document = coerce_document(
            {
                "id": "ecto",
                "title": "Ecto",
                "content": "Repos",
                "tags": ["ecto", "db"],
                "category": None,
                "breadcrumbs": [{"title": "Home", "path": "/"}],
            }
        )

        assert document.id == "ecto"
        assert document.tags == ("ecto", "db")
        assert document.category == "uncategorized"
        assert document.breadcrumbs[0].title == "Home"

    def test_attribute_object(self):
        record = SimpleNamespace(id="plug", title="Plug", content="Connections", path="/dev/plug")

        document = coerce_document(record)

        assert (document.id, document.title, document.path) == ("plug", "Plug", "/dev/plug")

    def test_integer_ids_become_strings(self):
        assert coerce_document({"id": 7, "title": "Seven"}).id == "7"

    def test_id_derived_from_file_path_then_path(self):
        assert coerce_document({"file_path": "docs/dev/phoenix-setup.md", "content": ""}).id == "phoenix_setup"
        assert coerce_document({"path": "/user/getting-started"}).id == "getting_started"

    def test_missing_content_is_read_from_file(self, markdown_file):
        document = coerce_document({"id": "setup", "file_path": markdown_file})

        assert document.content == "# Phoenix Setup\n\nInstall Elixir first."
        assert document.file_path == str(markdown_file)

    def test_missing_file_reads_as_empty(self, tmp_path):
        document = coerce_document({"id": "gone", "file_path": str(tmp_path / "gone.md")})

        assert document.content == ""

    @pytest.mark.parametrize(
        "record",
        [
            None,
            {"title": "No id"},
            {"id": "   "},
            {"id": "x", "tags": 5},
            {"id": "x", "last_modified": "not a date"},
        ],
    )
    def test_malformed_records(self, record):
        with pytest.raises(MalformedDocumentError):
            coerce_document(record)

    def test_malformed_error_names_the_document(self):
        with pytest.raises(MalformedDocumentError) as excinfo:
            coerce_document({"id": "x", "last_modified": "not a date"})

        assert excinfo.value.doc_id == "x"
        assert "last_modified" in excinfo.value.reason


class TestDocumentFromPath:
    def test_front_matter_supplies_metadata(self, markdown_file):
        document = document_from_path(markdown_file)

        assert document.id == "phoenix_setup"
        assert document.title == "Phoenix Setup"
        assert document.category == "dev"
        assert document.tags == ("phoenix", "install")
        assert document.last_modified == datetime(2024, 5, 1, tzinfo=timezone.utc)
        assert document.path == "/phoenix/setup"
        assert document.content.startswith("# Phoenix Setup")

    def test_plain_markdown_uses_file_name(self, tmp_path):
        path = tmp_path / "release-notes.md"
        path.write_text("Nothing but text", encoding="utf-8")

        document = coerce_document(str(path))

        assert document.id == "release_notes"
        assert document.title == "release-notes"
        assert document.category == "uncategorized"
        assert document.content == "Nothing but text"

    def test_unreadable_file_is_malformed(self, tmp_path):
        with pytest.raises(MalformedDocumentError, match="Cannot read"):
            document_from_path(tmp_path)


class TestScanFiles:
    def test_mapping_with_files(self):
        assert scan_files({"files": [1, 2]}) == [1, 2]

    def test_object_with_files(self):
        assert scan_files(SimpleNamespace(files=(1,))) == [1]

    def test_plain_iterable_and_none(self):
        assert scan_files(iter([1, 2])) == [1, 2]
        assert scan_files(None) == []

    def test_rejects_mapping_without_files(self):
        with pytest.raises(TypeError):
            scan_files({"id": "not a scan result"})

    def test_rejects_bare_string(self):
        with pytest.raises(TypeError):
            scan_files("docs/dev/setup.md")


def test_prepare_documents_reports_each_failure(markdown_file):
    prepared = prepare_documents(
        [
            {"id": "ok", "title": "Fine"},
            {"title": "No id"},
            str(markdown_file),
            {"id": "bad", "tags": 5},
        ]
    )

    assert [document.id for document in prepared.documents] == ["ok", "phoenix_setup"]
    assert [(failure.position, failure.doc_id) for failure in prepared.failures] == [(1, None), (3, "bad")]


def test_documents_from_scan_result(markdown_file):
    prepared = documents_from_scan_result({"files": [str(markdown_file)], "categories": {}})

    assert [document.id for document in prepared.documents] == ["phoenix_setup"]
    assert prepared.failures == []


def test_date_front_matter_values_become_midnight_utc():
    assert Document(id="d", last_modified=date(2024, 1, 2)).last_modified == datetime(2024, 1, 2, tzinfo=timezone.utc)
