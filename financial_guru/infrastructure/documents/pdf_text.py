"""Statement PDF text extraction using pdfplumber"""

import logging
import pdfplumber
from pathlib import Path
from typing import Union
from financial_guru.domain.exceptions import StatementParseError

logger = logging.getLogger(__name__)

# Below this the PDF has no usable text layer (scanned image)
MIN_TEXT_CHARS = 50


def extract_text(path: Union[str, Path]) -> str:
    """
    Concatenate the text layer of every page.

    Raises:
        StatementParseError: When the file cannot be opened or holds no text layer
    """
    try:
        with pdfplumber.open(path) as pdf:
            pages = [page.extract_text() or "" for page in pdf.pages]
    except FileNotFoundError as e:
        raise StatementParseError(f"Statement file not found: {path}") from e
    except Exception as e:
        logger.error(f"Failed to extract text from PDF: {e}")
        raise StatementParseError(f"PDF text extraction failed: {e}") from e

    text = "\n".join(pages)
    if len(text.strip()) < MIN_TEXT_CHARS:
        raise StatementParseError(
            f"This PDF has no text layer ({len(text.strip())} chars); scanned statements are not supported"
        )
    logger.info(f"Extracted {len(text.strip())} chars from {len(pages)} page(s)")
    return text
