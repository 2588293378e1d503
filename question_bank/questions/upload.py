import os
import logging
from typing import Any, Dict, List

from werkzeug.utils import secure_filename

from question_bank.utils.document_extractor import SUPPORTED_EXTENSIONS, extract_lines
from question_bank.utils.metadata import QUESTION_TYPE_MC
from question_bank.utils.question_parser import QuestionDraft, QuestionParser

logger = logging.getLogger(__name__)


class UploadValidationError(ValueError):
    """Raised when an uploaded file is rejected before it is read."""


class QuestionUploadProcessor:
    """Turn an uploaded Word document into question drafts for review."""

    def __init__(self, max_file_size: int = 10 * 1024 * 1024):
        self.parser = QuestionParser()
        self.max_file_size = max_file_size
        self.allowed_extensions = set(SUPPORTED_EXTENSIONS)

    def process_upload(self, file) -> Dict[str, Any]:
        """
        Validate, extract and parse an uploaded file.

        Args:
            file: Uploaded file object (werkzeug FileStorage)

        Returns:
            Dictionary with the parsed drafts and parsing statistics

        Raises:
            UploadValidationError: file missing, wrong type or too large
            DocumentExtractionError: file could not be read as a Word document
        """
        filename = self._validate_file(file)

        file_content = file.read()
        if len(file_content) > self.max_file_size:
            raise UploadValidationError(
                f'File too large. Maximum size: {self.max_file_size // (1024 * 1024)}MB'
            )

        lines = extract_lines(file_content, file.filename)
        drafts = self.parser.parse(lines)

        return {
            'filename': filename,
            'questions': [draft.to_dict() for draft in drafts],
            'statistics': self._collect_statistics(drafts),
            'warnings': self._collect_warnings(drafts)
        }

    def _validate_file(self, file) -> str:
        """
        Validate uploaded file, returns its sanitized filename.

        The extension is read from the name as uploaded: secure_filename strips
        non-ASCII characters, so a name like "數學題目.docx" would lose it.
        """
        if not file:
            raise UploadValidationError('No file uploaded')

        if not file.filename:
            raise UploadValidationError('No file selected')

        file_ext = os.path.splitext(file.filename.lower())[1]

        if file_ext not in self.allowed_extensions:
            raise UploadValidationError(
                f'Unsupported file type: {file_ext or "none"}. Only .doc and .docx files are allowed'
            )

        return secure_filename(file.filename) or f"upload{file_ext}"

    def _collect_statistics(self, drafts: List[QuestionDraft]) -> Dict[str, int]:
        mc_count = len([d for d in drafts if d.type == QUESTION_TYPE_MC])
        return {
            'total_parsed': len(drafts),
            'mc_parsed': mc_count,
            'conventional_parsed': len(drafts) - mc_count,
            'with_marking_scheme': len([d for d in drafts if d.marking_scheme])
        }

    def _collect_warnings(self, drafts: List[QuestionDraft]) -> List[str]:
        """Point the reviewer at drafts that will fail validation when saved."""
        warnings = []
        for draft in drafts:
            label = f'Question {draft.question_number}'
            if not draft.content:
                warnings.append(f'{label}: no question content found')
            if draft.correct_answer == '':
                warnings.append(f'{label}: no correct answer found')
            if draft.type == QUESTION_TYPE_MC and isinstance(draft.correct_answer, int):
                if not 0 <= draft.correct_answer < len(draft.options):
                    warnings.append(f'{label}: correct answer does not match any option')
        return warnings
