import io
import zipfile
import xml.etree.ElementTree as ET

import structlog
from pypdf import PdfReader

from studypartner.services.errors import ExtractionFailure, UnsupportedType

logger = structlog.get_logger()

SUPPORTED_KINDS = ("txt", "pdf", "docx")

DOCX_BODY_PART = "word/document.xml"
WORD_NS = "{http://schemas.openxmlformats.org/wordprocessingml/2006/main}"


def kind_from_filename(filename: str) -> str:
    """Map a file name to its document kind ("report.PDF" -> "pdf")."""
    name = (filename or "").lower()
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[1]


def extract(data: bytes, kind: str) -> str:
    """Convert raw document bytes of the given kind into plain text.

    Raises UnsupportedType for kinds other than txt/pdf/docx and ExtractionFailure
    when the container itself cannot be opened.
    """
    kind = (kind or "").lower().lstrip(".")
    if kind == "txt":
        return extract_text_from_txt(data)
    if kind == "pdf":
        return extract_text_from_pdf(data)
    if kind == "docx":
        return extract_text_from_docx(data)
    raise UnsupportedType(kind)


def extract_text_from_txt(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


# -------------------- PDF --------------------

def extract_text_from_pdf(data: bytes) -> str:
    """Extract text page by page; unreadable pages are skipped."""
    try:
        reader = PdfReader(io.BytesIO(data))
        pages = reader.pages
        page_count = len(pages)
    except Exception as e:
        raise ExtractionFailure(f"Failed to open PDF: {e}") from e

    text_parts = []
    for index in range(page_count):
        try:
            txt = pages[index].extract_text()
        except Exception as e:
            logger.warning("pdf_page_skipped", page=index + 1, error=str(e))
            continue
        if txt is None:
            continue
        text_parts.append(txt)
    return "\n".join(text_parts).strip()


# -------------------- DOCX --------------------

def extract_text_from_docx(data: bytes) -> str:
    """Join run texts per paragraph, paragraphs by newline."""
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            if DOCX_BODY_PART not in archive.namelist():
                return ""
            xml_payload = archive.read(DOCX_BODY_PART)
    except zipfile.BadZipFile as e:
        raise ExtractionFailure(f"Failed to open DOCX container: {e}") from e

    try:
        root = ET.fromstring(xml_payload)
    except ET.ParseError as e:
        # unreadable body part, no text
        logger.warning("docx_body_unparseable", error=str(e))
        return ""

    body = root.find(f"{WORD_NS}body")
    if body is None:
        return ""

    paragraphs = []
    for paragraph in body.findall(f"{WORD_NS}p"):
        runs = []
        for run in paragraph.findall(f"{WORD_NS}r"):
            runs.extend(node.text for node in run.iter(f"{WORD_NS}t") if node.text)
        paragraphs.append("".join(runs))
    return "\n".join(paragraphs).strip()
