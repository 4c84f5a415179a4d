import logging
from io import BytesIO

from pypdf import PdfReader

logger = logging.getLogger(__name__)

MAX_PAGES = 50


def extract_text_from_pdf(file_content: bytes) -> str | None:
    """Text of the first 50 pages, or None when the PDF is unreadable or has no text layer."""
    try:
        reader = PdfReader(BytesIO(file_content))
        parts = []
        for i, page in enumerate(reader.pages):
            if i >= MAX_PAGES:
                break
            text = page.extract_text()
            if text:
                parts.append(text.strip())
    except Exception as e:
        logger.warning("PDF text extraction failed: %s", e)
        return None
    return "\n\n".join(parts).strip() or None
