"""
Text extraction service for uploaded quote documents.
Supports PDF, DOCX and plain text uploads.
"""
import io
import re
import logging
from typing import List
import docx
from pdfminer.high_level import extract_text as pdf_extract_text
from pdfminer.pdfparser import PDFSyntaxError

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = 'application/pdf'
DOCX_MIME_TYPE = 'application/vnd.openxmlformats-officedocument.wordprocessingml.document'

# Rough token estimate used for truncation
CHARS_PER_TOKEN = 4
DEFAULT_MAX_TOKENS = 25_000

# Minimum stripped text length for a usable document
MIN_PDF_TEXT_LENGTH = 50
MIN_TEXT_LENGTH = 20

LARGE_FILE_BYTES = 10 * 1024 * 1024

TRUNCATION_NOTICE = "\n\n[Document truncated due to length - analysis based on first portion of document]"

QUOTE_KEYWORDS = ['quote', 'estimate', 'cost', 'labor', 'materials', 'total', 'service', '$', 'price']


class DocumentError(ValueError):
    """Raised when an upload is empty, unreadable or has too little text."""
    pass


def _normalize_whitespace(text: str) -> str:
    """
    Normalize whitespace and remove control characters.

    Args:
        text: Raw extracted text.

    Returns:
        Cleaned text with normalized whitespace.
    """
    # Remove control characters except newline, tab, carriage return
    text = re.sub(r'[\x00-\x08\x0B-\x0C\x0E-\x1F\x7F-\x9F]', '', text)

    text = text.replace('\r\n', '\n').replace('\r', '\n')
    text = re.sub(r'[ \t]+', ' ', text)
    text = re.sub(r'\n{3,}', '\n\n', text)

    lines = [line.strip() for line in text.split('\n')]
    return '\n'.join(lines).strip()


def _is_pdf(filename: str, mime_type: str) -> bool:
    if mime_type == PDF_MIME_TYPE:
        return True
    # Browsers occasionally send a generic type for PDFs
    return _is_generic_type(mime_type) and filename.lower().endswith('.pdf')


def _is_docx(filename: str, mime_type: str) -> bool:
    if mime_type == DOCX_MIME_TYPE:
        return True
    return _is_generic_type(mime_type) and filename.lower().endswith('.docx')


def _is_generic_type(mime_type: str) -> bool:
    return not mime_type or mime_type == 'application/octet-stream'


def _extract_pdf_text(content: bytes, filename: str) -> str:
    """
    Extract text from PDF bytes.

    Raises:
        DocumentError: If the PDF cannot be parsed or has no selectable text.
    """
    try:
        text = pdf_extract_text(io.BytesIO(content))
    except PDFSyntaxError:
        logger.warning(f"PDF syntax error in {filename}")
        raise DocumentError(f"Failed to read file: {filename}. The PDF appears to be corrupted.")
    except Exception as e:
        logger.warning(f"Failed to extract text from PDF {filename}: {type(e).__name__}")
        raise DocumentError(
            f"Failed to read file: {filename}. The PDF may be encrypted or in an unsupported format."
        )

    text = _normalize_whitespace(text or '')

    if len(text) <= MIN_PDF_TEXT_LENGTH:
        logger.info(f"PDF {filename} yielded {len(text)} characters - likely scanned or image-based")
        raise DocumentError(
            f"Could not extract readable text from {filename}. The PDF appears to be scanned or "
            "image-based. Please upload a PDF with selectable text or copy the quote into a text file (.txt)."
        )

    logger.info(f"PDF text extracted: {len(text)} characters")
    return text


def _extract_docx_text(content: bytes, filename: str) -> str:
    """Extract paragraph and table text from DOCX bytes."""
    try:
        document = docx.Document(io.BytesIO(content))
    except Exception as e:
        logger.warning(f"Failed to open DOCX {filename}: {type(e).__name__}")
        raise DocumentError(
            f"Failed to read file: {filename}. The document may be corrupted or in an unsupported format."
        )

    parts = [para.text for para in document.paragraphs if para.text.strip()]

    # Quotes often keep line items in tables
    for table in document.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                parts.append(' | '.join(cells))

    text = '\n\n'.join(parts)
    logger.info(f"DOCX text extracted: {len(text)} characters from {len(document.paragraphs)} paragraphs")
    return text


def _decode_plain_text(content: bytes, filename: str) -> str:
    """Decode as UTF-8, replacing invalid bytes (e.g. Windows-1252 dashes) with U+FFFD."""
    text = content.decode('utf-8-sig', errors='replace')
    replaced = text.count('\ufffd')
    if replaced:
        logger.warning(f"{filename} is not valid UTF-8 - replaced {replaced} undecodable bytes")
    return text


def truncate_text(text: str, max_tokens: int = DEFAULT_MAX_TOKENS) -> str:
    """
    Cap text at an approximate token budget.

    Args:
        text: Extracted document text.
        max_tokens: Token budget, estimated at four characters per token.

    Returns:
        The text unchanged if it fits, otherwise the kept prefix followed by
        TRUNCATION_NOTICE.
    """
    max_chars = max_tokens * CHARS_PER_TOKEN

    if len(text) <= max_chars:
        logger.debug(f"Text length {len(text)} characters - no truncation needed")
        return text

    logger.info(f"Truncating text from {len(text)} to {max_chars} characters to stay under rate limits")
    return text[:max_chars] + TRUNCATION_NOTICE


def extract_text(content: bytes, filename: str, mime_type: str,
                 max_tokens: int = DEFAULT_MAX_TOKENS) -> str:
    """
    Extract and truncate text from an uploaded quote.

    Args:
        content: Raw uploaded bytes.
        filename: Original file name, used for messages and type fallback.
        mime_type: Declared MIME type of the upload.
        max_tokens: Token budget passed to truncate_text.

    Returns:
        Text ready to embed in a prompt.

    Raises:
        DocumentError: If the file is empty, unreadable, or has too little text.
    """
    if len(content) == 0:
        raise DocumentError('File appears to be empty. Please select a valid file with content.')

    if len(content) > LARGE_FILE_BYTES:
        logger.warning(f"Large file uploaded: {filename} ({len(content)} bytes)")

    mime_type = (mime_type or '').lower()

    if _is_pdf(filename, mime_type):
        return truncate_text(_extract_pdf_text(content, filename), max_tokens)

    if _is_docx(filename, mime_type):
        text = _extract_docx_text(content, filename)
    else:
        text = _decode_plain_text(content, filename)

    if len(text.strip()) < MIN_TEXT_LENGTH:
        raise DocumentError(
            f"Could not extract readable content from {filename}. Please try uploading as a text file (.txt) "
            "or ensure the file contains readable text."
        )

    return truncate_text(text, max_tokens)


def assess_content(text: str) -> List[str]:
    """Return warnings about thin or off-topic document content."""
    warnings = []

    if len(text) < 100:
        warnings.append('Limited content detected - analysis may be less detailed')

    lowered = text.lower()
    has_quote_content = any(keyword in lowered for keyword in QUOTE_KEYWORDS)

    if not has_quote_content and len(text) < 200:
        warnings.append('File may not contain a service quote - please verify correct document')

    return warnings
