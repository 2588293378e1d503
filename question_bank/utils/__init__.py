from .validators import validate_required_fields, sanitize_string, validate_question_data
from .metadata import derive_source_type, relevant_source_fields, build_source_tag
from .question_parser import QuestionParser, QuestionDraft, parse_lines
from .document_extractor import DocumentExtractionError, extract_lines
from .document_exporter import DocumentExporter, ExportError, render_template, render_worksheet

__all__ = [
    'validate_required_fields',
    'sanitize_string',
    'validate_question_data',
    'derive_source_type',
    'relevant_source_fields',
    'build_source_tag',
    'QuestionParser',
    'QuestionDraft',
    'parse_lines',
    'DocumentExtractionError',
    'extract_lines',
    'DocumentExporter',
    'ExportError',
    'render_template',
    'render_worksheet'
]
