import io
import re

from pdfminer.high_level import extract_text as pdf_extract

from careeros.models.models import Document
from careeros.utils.exceptions import ProcessingError, UnprocessableContentError, ValidationError
from careeros.utils.logging_config import get_logger

logger = get_logger(__name__)

ACCEPTED_MEDIA_TYPE = "application/pdf"


def read_pdf(data: bytes) -> str:
    return pdf_extract(io.BytesIO(data))


def clean_text(x: str) -> str:
    x = re.sub(r'\s+', ' ', x).strip()
    return x


def extract_document_text(document: Document) -> str:
    """Turn an uploaded resume into plain text.

    Only PDFs are accepted; anything else is rejected before pdfminer is
    touched. Extraction is deterministic, so failures are not retried.
    """
    media_type = (document.content_type or "").split(";")[0].strip().lower()
    if media_type != ACCEPTED_MEDIA_TYPE:
        raise ValidationError(
            "Only PDF files are accepted",
            field="file",
            value=document.content_type or "unknown",
        )

    try:
        text = read_pdf(document.content)
    except Exception as e:
        logger.error(f"PDF extraction failed for {document.filename}: {e}")
        raise ProcessingError(
            f"Could not read PDF: {e}",
            document_name=document.filename,
            document_type=media_type,
            cause=e,
        ) from e

    if not text or not text.strip():
        raise UnprocessableContentError(
            "Could not extract text from PDF",
            document_name=document.filename,
        )

    logger.debug(f"Extracted {len(text)} characters from {document.filename}")
    return text
