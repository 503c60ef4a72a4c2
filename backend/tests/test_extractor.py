import io
import struct

import olefile
import pytest
from docx import Document as DocxDocument
from openpyxl import Workbook
from pptx import Presentation

from chat_backend.document_processor.extractor import (
    DOC,
    DOCX,
    EMPTY_MESSAGE,
    FAILED_PREFIX,
    PDF,
    PPTX,
    UNSUPPORTED_MESSAGE,
    XLS,
    XLSX,
    clean_for_ai,
    count_words,
    is_text_extraction_supported,
    summarize,
)

ENDOFCHAIN = 0xFFFFFFFE
NOSTREAM = 0xFFFFFFFF


def make_pdf(text):
    """Single page PDF drawing ``text`` in Helvetica."""
    content = b"BT /F1 12 Tf 72 720 Td (" + text.encode("latin-1") + b") Tj ET"
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
        b"/Resources << /Font << /F1 4 0 R >> >> /Contents 5 0 R >>",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
        b"<< /Length %d >>\nstream\n" % len(content) + content + b"\nendstream",
    ]
    out = io.BytesIO()
    out.write(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(out.tell())
        out.write(b"%d 0 obj\n" % number + body + b"\nendobj\n")
    xref = out.tell()
    out.write(b"xref\n0 %d\n" % (len(objects) + 1))
    out.write(b"0000000000 65535 f \n")
    for offset in offsets:
        out.write(b"%010d 00000 n \n" % offset)
    out.write(b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (len(objects) + 1, xref))
    return out.getvalue()


def _dir_entry(name, entry_type, child=NOSTREAM, start=ENDOFCHAIN, size=0):
    encoded = name.encode("utf-16-le")
    return struct.pack(
        "<64sHBBIII16sIQQIII",
        encoded, len(encoded) + 2 if name else 0, entry_type, 1,
        NOSTREAM, NOSTREAM, child, b"\x00" * 16, 0, 0, 0, start, size, 0,
    )


def make_ole(stream_name, data):
    """OLE2 compound file holding one stream, big enough to live in regular sectors.

    Layout: sector 0 is the FAT, sector 1 the directory, the stream follows.
    """
    sector_size = 512
    data = data.ljust(max(4096, -(-len(data) // sector_size) * sector_size), b"\x00")
    data_sectors = len(data) // sector_size

    fat = [0xFFFFFFFD, ENDOFCHAIN]
    fat += [sector + 1 for sector in range(2, 2 + data_sectors - 1)] + [ENDOFCHAIN]
    fat += [NOSTREAM] * (128 - len(fat))

    header = struct.pack(
        "<8s16s6H10I",
        olefile.MAGIC, b"\x00" * 16, 0x3E, 3, 0xFFFE, 9, 6, 0,
        0, 0, 1, 1, 0, 4096, ENDOFCHAIN, 0, ENDOFCHAIN, 0,
    )
    header += struct.pack("<109I", 0, *([NOSTREAM] * 108))

    directory = _dir_entry("Root Entry", 5, child=1)
    directory += _dir_entry(stream_name, 2, start=2, size=len(data))
    directory += _dir_entry("", 0) * 2

    return header + struct.pack("<128I", *fat) + directory + data


def _biff_record(opcode, data=b""):
    return struct.pack("<HH", opcode, len(data)) + data


def _biff_string(text, length_format):
    encoded = text.encode("latin-1")
    return struct.pack(length_format, len(encoded)) + b"\x00" + encoded


def make_xls(sheet_name, rows):
    """BIFF8 workbook with one sheet of text cells."""
    def bof(stream_type):
        return _biff_record(0x0809, struct.pack("<4H2I", 0x0600, stream_type, 0x0DBB, 0x07CC, 0, 0x06))

    def boundsheet(offset):
        return _biff_record(0x0085, struct.pack("<IBB", offset, 0, 0) + _biff_string(sheet_name, "<B"))

    eof = _biff_record(0x000A)
    sheet_offset = len(bof(0x0005) + boundsheet(0) + eof)
    workbook = bof(0x0005) + boundsheet(sheet_offset) + eof

    workbook += bof(0x0010)
    for row_index, row in enumerate(rows):
        for col_index, value in enumerate(row):
            cell = struct.pack("<3H", row_index, col_index, 0) + _biff_string(value, "<H")
            workbook += _biff_record(0x0204, cell)
    workbook += eof
    return make_ole("Workbook", workbook)


@pytest.mark.parametrize("raw", [
    "Hello world",
    "  leading and trailing  ",
    "line one\n\n\n\nline two",
    "tabs\tand\r\nwindows\r\nnewlines",
    "\n\n\n",
    "",
    "already clean",
    "mixed   unicode spaces",
])
def test_clean_for_ai_is_idempotent(raw):
    once = clean_for_ai(raw)
    assert clean_for_ai(once) == once


def test_clean_for_ai_collapses_whitespace():
    assert clean_for_ai("  a \n\n\n b\t\tc  ") == "a b c"
    assert clean_for_ai(None) == ""


@pytest.mark.parametrize("content_type,expected", [
    ("application/pdf", True),
    ("text/plain", True),
    ("text/plain; charset=utf-8", True),
    ("TEXT/CSV", True),
    ("text/x-python", True),
    ("application/javascript", True),
    ("application/xhtml+xml", True),
    ("application/ld+json", True),
    ("application/rtf", True),
    ("application/octet-stream", False),
    ("image/png", False),
    ("", False),
    (None, False),
])
def test_is_text_extraction_supported(content_type, expected):
    assert is_text_extraction_supported(content_type) is expected


def test_extract_plain_text(extractor):
    result = extractor.extract(b"Hello world", "text/plain")
    assert result.success is True
    assert result.text == "Hello world"


def test_extract_accepts_stream(extractor):
    result = extractor.extract(io.BytesIO(b"  Hello\n\n\n\nworld  "), "text/plain")
    assert result.text == "Hello world"


def test_unsupported_type_returns_sentinel(extractor):
    result = extractor.extract(b"\x00\x01\x02", "application/octet-stream")
    assert result.success is False
    assert result.text == UNSUPPORTED_MESSAGE


def test_empty_supported_file_is_successful_with_placeholder(extractor):
    result = extractor.extract(b"   \n\t  ", "text/plain")
    assert result.success is True
    assert result.text == EMPTY_MESSAGE


def test_corrupt_pdf_reports_failure(extractor):
    result = extractor.extract(b"this is not a pdf", "application/pdf")
    assert result.success is False
    assert result.text.startswith(FAILED_PREFIX)


def test_extract_pdf(extractor):
    result = extractor.extract(make_pdf("Quarterly report"), PDF)
    assert result.success is True
    assert "Quarterly report" in result.text


def test_legacy_doc_without_ole_header_reports_failure(extractor):
    result = extractor.extract(b"plain bytes", "application/msword")
    assert result.success is False
    assert "Not a valid OLE2 document" in result.text


def test_extract_legacy_doc_text_runs(extractor):
    document = make_ole("WordDocument", b"\x00\x01" + "Quarterly report".encode("utf-16-le") + b"\x00\x00")

    result = extractor.extract(document, DOC)
    assert result.success is True
    assert result.text == "Quarterly report"


def test_legacy_ppt_without_presentation_stream_reports_failure(extractor):
    result = extractor.extract(make_ole("WordDocument", b"text"), "application/vnd.ms-powerpoint")
    assert result.success is False
    assert "Missing 'PowerPoint Document' stream" in result.text


def test_extract_xls(extractor):
    workbook = make_xls("Budget", [["Item", "Cost"], ["Paper", "12"]])

    result = extractor.extract(workbook, XLS)
    assert result.success is True
    assert result.text == "[sheet] Budget Item | Cost Paper | 12"


def test_extract_markdown(extractor):
    result = extractor.extract(b"# Title\n\nSome *bold* text", "text/markdown")
    assert result.text == "Title Some bold text"


def test_extract_html_drops_scripts(extractor):
    html = b"<html><head><script>var x = 1;</script></head><body><p>Hello</p><p>World</p></body></html>"
    result = extractor.extract(html, "text/html")
    assert result.success is True
    assert result.text == "Hello World"


def test_extract_json(extractor):
    result = extractor.extract(b'{"name": "demo", "items": [1, 2]}', "application/json")
    assert result.success is True
    assert '"name": "demo"' in result.text


def test_extract_invalid_json_reports_failure(extractor):
    result = extractor.extract(b"{not json", "application/json")
    assert result.success is False
    assert result.text.startswith(FAILED_PREFIX)


def test_extract_csv(extractor):
    result = extractor.extract(b"name,qty\napple,3\n", "text/csv")
    assert result.text == "name | qty apple | 3"


def test_extract_rtf(extractor):
    result = extractor.extract(rb"{\rtf1\ansi Hello RTF}", "application/rtf")
    assert result.success is True
    assert "Hello RTF" in result.text


def test_extract_docx(extractor):
    doc = DocxDocument()
    doc.add_paragraph("Quarterly report")
    doc.add_paragraph("Revenue grew")
    buffer = io.BytesIO()
    doc.save(buffer)

    result = extractor.extract(buffer.getvalue(), DOCX)
    assert result.success is True
    assert result.text == "Quarterly report Revenue grew"


def test_extract_xlsx(extractor):
    wb = Workbook()
    ws = wb.active
    ws.title = "Data"
    ws.append(["name", "qty"])
    ws.append(["apple", 3])
    buffer = io.BytesIO()
    wb.save(buffer)

    result = extractor.extract(buffer.getvalue(), XLSX)
    assert result.success is True
    assert result.text == "[sheet] Data name | qty apple | 3"


def test_extract_pptx(extractor):
    prs = Presentation()
    slide = prs.slides.add_slide(prs.slide_layouts[5])
    slide.shapes.title.text = "Roadmap"
    buffer = io.BytesIO()
    prs.save(buffer)

    result = extractor.extract(buffer.getvalue(), PPTX)
    assert result.success is True
    assert "Roadmap" in result.text


def test_summarize_prefers_word_boundary():
    text = "word " * 30
    preview = summarize(text.strip(), 52)
    assert preview.endswith("...")
    assert not preview[:-3].endswith(" ")
    assert len(preview) <= 55


def test_summarize_hard_cut_without_late_space():
    assert summarize("abcdefghij", 5) == "abcde..."
    assert summarize("short", 10) == "short"
    assert summarize(None, 10) is None


def test_count_words():
    assert count_words("one two  three") == 3
    assert count_words("   ") == 0
    assert count_words(None) == 0


def test_analyze_supported_file(extractor):
    analysis = extractor.analyze("notes.txt", b"Hello world", "text/plain")
    assert analysis.text_extraction_supported is True
    assert analysis.extraction_successful is True
    assert analysis.full_text == "Hello world"
    assert analysis.text_preview == "Hello world"
    assert analysis.word_count == 2
    assert analysis.file_size == 11


def test_analyze_unsupported_file(extractor):
    analysis = extractor.analyze("photo.png", b"\x89PNG", "image/png")
    assert analysis.text_extraction_supported is False
    assert analysis.extraction_successful is False
    assert analysis.full_text is None
