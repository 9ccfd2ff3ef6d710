"""
Unit tests for document text extraction
"""
import io
import zipfile
from unittest.mock import patch

import pytest
from pypdf import PdfWriter

from studypartner.services.errors import ExtractionFailure, UnsupportedType
from studypartner.services.extraction import extract, kind_from_filename

DOCX_XML = """<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<w:document xmlns:w="http://schemas.openxmlformats.org/wordprocessingml/2006/main">
  <w:body>
    <w:p><w:r><w:t>Photosynthesis </w:t></w:r><w:r><w:t>converts light.</w:t></w:r></w:p>
    <w:p><w:r><w:t>Chlorophyll absorbs it.</w:t></w:r></w:p>
    <w:sectPr/>
  </w:body>
</w:document>
"""


def make_docx(document_xml=DOCX_XML, extra_parts=None):
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        archive.writestr("[Content_Types].xml", "<Types/>")
        if document_xml is not None:
            archive.writestr("word/document.xml", document_xml)
        for name, body in (extra_parts or {}).items():
            archive.writestr(name, body)
    return buffer.getvalue()


def make_pdf(pages=2):
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=200, height=200)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


class TestKinds:
    def test_kind_from_filename(self):
        assert kind_from_filename("Lecture 1.PDF") == "pdf"
        assert kind_from_filename("notes.txt") == "txt"
        assert kind_from_filename("README") == ""

    def test_unsupported_kind(self):
        with pytest.raises(UnsupportedType):
            extract(b"whatever", "pptx")


class TestText:
    def test_utf8_bytes(self):
        assert extract("Café notes".encode("utf-8"), "txt") == "Café notes"

    def test_invalid_bytes_marked(self):
        assert extract(b"caf\xff notes", "txt") == "caf\ufffd notes"

    def test_text_is_not_trimmed(self):
        assert extract(b"  spaced  ", "txt") == "  spaced  "


class TestDocx:
    def test_runs_and_paragraphs(self):
        """Runs join without a separator, paragraphs with a newline"""
        text = extract(make_docx(), "docx")
        assert text == "Photosynthesis converts light.\nChlorophyll absorbs it."

    def test_run_with_several_text_nodes(self):
        xml = DOCX_XML.replace(
            "<w:r><w:t>Chlorophyll absorbs it.</w:t></w:r>",
            "<w:r><w:t>Name:</w:t><w:tab/><w:t>Alice</w:t></w:r>",
        )
        assert extract(make_docx(xml), "docx") == "Photosynthesis converts light.\nName:Alice"

    def test_other_parts_ignored(self):
        data = make_docx(extra_parts={"word/footer1.xml": "<w:ftr>Footer text</w:ftr>"})
        assert "Footer" not in extract(data, "docx")

    def test_missing_body_part(self):
        assert extract(make_docx(document_xml=None), "docx") == ""

    def test_not_a_zip(self):
        with pytest.raises(ExtractionFailure):
            extract(b"plain bytes, not a zip", "docx")


class TestPdf:
    def test_blank_pages(self):
        assert extract(make_pdf(), "pdf") == ""

    def test_unreadable_page_is_skipped(self):
        """A page that raises is dropped; the rest are joined by newlines"""
        with patch("pypdf.PageObject.extract_text", side_effect=[ValueError("bad page"), "  Page two text  ", "Page three"]):
            text = extract(make_pdf(pages=3), "pdf")
        assert text == "Page two text  \nPage three"

    def test_malformed_pdf(self):
        with pytest.raises(ExtractionFailure):
            extract(b"not a pdf at all", "pdf")
