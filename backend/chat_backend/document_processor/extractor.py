"""
Text extraction for uploaded documents.

Extraction never raises: unsupported types and parser failures are reported
as a placeholder text paired with ``success=False``.
"""
import csv
import io
import json
import logging
import re
from dataclasses import dataclass
from typing import BinaryIO, Callable, Dict, List, Optional, Union

import markdown
import olefile
import openpyxl
import xlrd
from bs4 import BeautifulSoup
from docx import Document as DocxDocument
from pptx import Presentation
from pypdf import PdfReader
from striprtf.striprtf import rtf_to_text

from ..models.file import FileAnalysis

logger = logging.getLogger(__name__)

UNSUPPORTED_MESSAGE = "Text extraction not supported for this file type."
EMPTY_MESSAGE = "No readable text content found in this file."
FAILED_PREFIX = "Text extraction failed: "

PDF = "application/pdf"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
PPTX = "application/vnd.openxmlformats-officedocument.presentationml.presentation"
XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
DOC = "application/msword"
PPT = "application/vnd.ms-powerpoint"
XLS = "application/vnd.ms-excel"

SUPPORTED_TEXT_TYPES = [
    PDF,
    DOCX,
    PPTX,
    XLSX,
    DOC,
    PPT,
    XLS,
    "text/plain",
    "text/html",
    "text/xml",
    "application/xml",
    "application/json",
    "text/csv",
    "text/markdown",
    "application/rtf",
]

# Printable ASCII runs in legacy binary Office streams, 8-bit and UTF-16LE
_ASCII_RUN = re.compile(rb"[\x20-\x7e\t\r\n]{4,}")
_UTF16_RUN = re.compile(rb"(?:[\x20-\x7e\t\r\n]\x00){4,}")


@dataclass
class ExtractionResult:
    """Outcome of an extraction attempt."""
    text: str
    success: bool


def normalize_content_type(content_type: Optional[str]) -> Optional[str]:
    """Lower-case a MIME type and drop any parameters such as charset."""
    if content_type is None:
        return None
    return content_type.split(";", 1)[0].strip().lower()


def is_text_extraction_supported(content_type: Optional[str]) -> bool:
    """Check whether text can be extracted from the given MIME type."""
    lowered = normalize_content_type(content_type)
    if not lowered:
        return False

    if lowered in SUPPORTED_TEXT_TYPES:
        return True

    return (
        lowered.startswith("text/")
        or "javascript" in lowered
        or "css" in lowered
        or "html" in lowered
        or "xml" in lowered
        or "json" in lowered
    )


def clean_for_ai(raw_text: Optional[str]) -> str:
    """Normalize whitespace so the text is compact in a prompt."""
    if raw_text is None:
        return ""

    cleaned = re.sub(r"\s+", " ", raw_text)
    cleaned = re.sub(r"\n{3,}", "\n\n", cleaned)
    return cleaned.strip()


def summarize(full_text: Optional[str], max_length: int) -> Optional[str]:
    """Cut text to a preview, preferring a word boundary near the end."""
    if full_text is None or len(full_text) <= max_length:
        return full_text

    truncated = full_text[:max_length]
    last_space = truncated.rfind(" ")
    if last_space > max_length * 0.8:
        truncated = truncated[:last_space]

    return truncated + "..."


def count_words(text: Optional[str]) -> int:
    if text is None or not text.strip():
        return 0
    return len(text.split())


class TextExtractor:
    """Detects the document format from its MIME type and pulls out plain text."""

    def is_supported(self, content_type: Optional[str]) -> bool:
        return is_text_extraction_supported(content_type)

    def extract(self, stream: Union[BinaryIO, bytes], content_type: Optional[str]) -> ExtractionResult:
        """Extract cleaned text from a byte stream."""
        if not is_text_extraction_supported(content_type):
            logger.info("Text extraction not supported for file type: %s", content_type)
            return ExtractionResult(UNSUPPORTED_MESSAGE, False)

        try:
            content = stream if isinstance(stream, bytes) else stream.read()
            parser = self._select_parser(normalize_content_type(content_type))
            raw_text = parser(content)
        except Exception as e:
            logger.warning("Text extraction failed for %s: %s", content_type, e)
            return ExtractionResult(f"{FAILED_PREFIX}{e}", False)

        cleaned = clean_for_ai(raw_text)
        if not cleaned:
            logger.warning("No text content extracted from file with content type: %s", content_type)
            return ExtractionResult(EMPTY_MESSAGE, True)

        logger.info("Extracted %d characters from %s content", len(cleaned), content_type)
        return ExtractionResult(cleaned, True)

    def analyze(self, file_name: str, content: bytes, content_type: Optional[str]) -> FileAnalysis:
        """Extract text and report file info with a short preview."""
        analysis = FileAnalysis(
            file_name=file_name,
            file_size=len(content),
            content_type=content_type,
            text_extraction_supported=is_text_extraction_supported(content_type),
        )
        if not analysis.text_extraction_supported:
            return analysis

        result = self.extract(content, content_type)
        if result.success:
            analysis.extraction_successful = True
            analysis.full_text = result.text
            analysis.text_preview = summarize(result.text, 500)
            analysis.word_count = count_words(result.text)
        else:
            analysis.error_message = result.text
        return analysis

    def _select_parser(self, content_type: str) -> Callable[[bytes], str]:
        parsers: Dict[str, Callable[[bytes], str]] = {
            PDF: self._extract_pdf_content,
            DOCX: self._extract_docx_content,
            PPTX: self._extract_pptx_content,
            XLSX: self._extract_xlsx_content,
            XLS: self._extract_xls_content,
            DOC: lambda content: self._extract_legacy_office_content(content, "WordDocument"),
            PPT: lambda content: self._extract_legacy_office_content(content, "PowerPoint Document"),
            "text/csv": self._extract_csv_content,
            "application/json": self._extract_json_content,
        }
        if content_type in parsers:
            return parsers[content_type]
        if "rtf" in content_type:
            return self._extract_rtf_content
        if "markdown" in content_type:
            return self._extract_markdown_content
        if "html" in content_type or "xml" in content_type:
            return self._extract_html_content
        return self._extract_text_content

    def _extract_pdf_content(self, content: bytes) -> str:
        """Extract text from PDF file."""
        reader = PdfReader(io.BytesIO(content))
        text = ""
        for page in reader.pages:
            text += (page.extract_text() or "") + "\n"
        return text.strip()

    def _extract_docx_content(self, content: bytes) -> str:
        """Extract text from DOCX file, including table cells."""
        doc = DocxDocument(io.BytesIO(content))
        lines = [paragraph.text for paragraph in doc.paragraphs]
        for table in doc.tables:
            for row in table.rows:
                lines.append(" | ".join(cell.text for cell in row.cells))
        return "\n".join(lines).strip()

    def _extract_pptx_content(self, content: bytes) -> str:
        prs = Presentation(io.BytesIO(content))
        out: List[str] = []
        for slide in prs.slides:
            for shape in slide.shapes:
                if shape.has_text_frame and shape.text_frame.text.strip():
                    out.append(shape.text_frame.text)
        return "\n".join(out)

    def _extract_xlsx_content(self, content: bytes) -> str:
        wb = openpyxl.load_workbook(io.BytesIO(content), read_only=True, data_only=True)
        out: List[str] = []
        try:
            for ws in wb.worksheets:
                out.append(f"[sheet] {ws.title}")
                for row in ws.iter_rows(values_only=True):
                    row_text = " | ".join(str(value).strip() for value in row if value is not None)
                    if row_text:
                        out.append(row_text)
        finally:
            wb.close()
        return "\n".join(out)

    def _extract_xls_content(self, content: bytes) -> str:
        book = xlrd.open_workbook(file_contents=content)
        out: List[str] = []
        for sheet in book.sheets():
            out.append(f"[sheet] {sheet.name}")
            for row_index in range(sheet.nrows):
                values = [str(value).strip() for value in sheet.row_values(row_index) if str(value).strip()]
                if values:
                    out.append(" | ".join(values))
        return "\n".join(out)

    def _extract_legacy_office_content(self, content: bytes, stream_name: str) -> str:
        """Best-effort text runs from a binary OLE2 Office stream."""
        if content[:8] != olefile.MAGIC:
            raise ValueError("Not a valid OLE2 document")

        ole = olefile.OleFileIO(io.BytesIO(content))
        try:
            if not ole.exists(stream_name):
                raise ValueError(f"Missing '{stream_name}' stream")
            data = ole.openstream(stream_name).read()
        finally:
            ole.close()

        runs = [match.decode("utf-16le") for match in _UTF16_RUN.findall(data)]
        runs.extend(match.decode("latin-1") for match in _ASCII_RUN.findall(data))
        return "\n".join(run.strip() for run in runs if run.strip())

    def _extract_rtf_content(self, content: bytes) -> str:
        return rtf_to_text(self._decode(content))

    def _extract_markdown_content(self, content: bytes) -> str:
        """Extract text from Markdown file."""
        html = markdown.markdown(self._decode(content))
        soup = BeautifulSoup(html, "html.parser")
        return soup.get_text()

    def _extract_html_content(self, content: bytes) -> str:
        """Extract text from HTML or XML markup."""
        soup = BeautifulSoup(self._decode(content), "html.parser")
        for tag in soup(["script", "style"]):
            tag.decompose()
        return soup.get_text(separator="\n")

    def _extract_csv_content(self, content: bytes) -> str:
        reader = csv.reader(io.StringIO(self._decode(content)))
        return "\n".join(" | ".join(cell.strip() for cell in row) for row in reader if row)

    def _extract_json_content(self, content: bytes) -> str:
        data = json.loads(self._decode(content))
        return json.dumps(data, ensure_ascii=False, indent=2)

    def _extract_text_content(self, content: bytes) -> str:
        """Extract text from plain text file."""
        return self._decode(content)

    @staticmethod
    def _decode(content: bytes) -> str:
        return content.decode("utf-8-sig", errors="replace")
