import os
import re
import logging
from io import BytesIO
from typing import List

import mammoth

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = ('.docx', '.doc')


class DocumentExtractionError(Exception):
    """Raised when an uploaded document cannot be turned into text."""


def extract_text(file_content: bytes) -> str:
    """Extract the raw text of a Word document (paragraphs separated by blank lines)."""
    if not file_content:
        raise DocumentExtractionError("Could not read document: file is empty")

    try:
        result = mammoth.extract_raw_text(BytesIO(file_content))
    except Exception as e:
        logger.error(f"Error extracting text with mammoth: {str(e)}")
        raise DocumentExtractionError("Could not read document") from e

    for message in result.messages:
        logger.warning(f"mammoth: {message}")

    return result.value


def split_lines(text: str) -> List[str]:
    return [line.strip() for line in re.split(r'\r?\n', text)]


def extract_lines(file_content: bytes, filename: str = '') -> List[str]:
    """
    Turn an uploaded .docx/.doc file into the trimmed line sequence the
    question parser consumes.
    """
    if filename:
        file_ext = os.path.splitext(filename.lower())[1]
        if file_ext not in SUPPORTED_EXTENSIONS:
            raise DocumentExtractionError(f"Unsupported file format: {file_ext}")

    lines = split_lines(extract_text(file_content))
    logger.debug(f"Extracted {len(lines)} lines from {filename or 'document'}")
    return lines
