"""
Question metadata shared by the parser, the exporter and the storage layer.

Source types decide which of the optional ``year`` / ``school`` / ``textbook``
fields apply to a question, so every caller goes through
``derive_source_type`` instead of comparing source names itself.
"""

from typing import Dict, List, Optional

EXAM_SOURCES = ('HKDSE', 'HKCEE', 'HKALE')
SCHOOL_SOURCES = ('School Exam', 'School Mock')
TEXTBOOK_SOURCE = 'Textbook'

SOURCES = [*EXAM_SOURCES, *SCHOOL_SOURCES, TEXTBOOK_SOURCE]

QUESTION_TYPE_CONVENTIONAL = 'Conventional'
QUESTION_TYPE_MC = 'MC'
QUESTION_TYPES = [QUESTION_TYPE_CONVENTIONAL, QUESTION_TYPE_MC]

DSE_TOPICS = [
    'Quadratic Equations', 'Functions and Graphs', 'Equations of Straight Lines',
    'Polynomials', 'Inequalities', 'Exponential and Logarithmic Functions',
    'Trigonometry', 'Permutations and Combinations', 'Binomial Theorem',
    'Sequences', 'Vectors', 'Coordinate Geometry', 'Circles',
    'Statistics', 'Probability', 'Mensuration', 'Transformation',
    'Locus', 'Linear Programming', 'Matrices', 'Complex Numbers',
    'Calculus', 'Limits', 'Differentiation', 'Integration',
    'Applications of Calculus', 'Data Handling', 'Others'
]

MODULES: Dict[str, Dict[str, object]] = {
    'compulsory': {
        'title': 'Compulsory Part',
        'topics': ['Algebra', 'Geometry', 'Trigonometry', 'Functions', 'Coordinate Geometry'],
    },
    'module1': {
        'title': 'Module 1 (Calculus & Statistics)',
        'topics': ['Differentiation', 'Integration', 'Probability', 'Statistical Analysis', 'Data Representation'],
    },
    'module2': {
        'title': 'Module 2 (Algebra & Calculus)',
        'topics': ['Advanced Algebra', 'Calculus Methods', 'Mathematical Induction', 'Complex Numbers', 'Vectors'],
    },
}
DEFAULT_MODULE = 'compulsory'

SOURCE_TYPE_EXAM = 'exam'
SOURCE_TYPE_SCHOOL = 'school'
SOURCE_TYPE_TEXTBOOK = 'textbook'

_FIELDS_BY_SOURCE_TYPE = {
    SOURCE_TYPE_EXAM: ['year'],
    SOURCE_TYPE_SCHOOL: ['school', 'year'],
    SOURCE_TYPE_TEXTBOOK: ['textbook'],
}


def derive_source_type(source: Optional[str]) -> str:
    """Classify a source as 'exam', 'school', 'textbook' or '' when unknown."""
    if source in EXAM_SOURCES:
        return SOURCE_TYPE_EXAM
    if source in SCHOOL_SOURCES:
        return SOURCE_TYPE_SCHOOL
    if source == TEXTBOOK_SOURCE:
        return SOURCE_TYPE_TEXTBOOK
    return ''


def relevant_source_fields(source: Optional[str]) -> List[str]:
    """Return the optional metadata fields that apply to questions from ``source``."""
    return list(_FIELDS_BY_SOURCE_TYPE.get(derive_source_type(source), []))


def build_source_tag(source: Optional[str], year: str = '', school: str = '',
                     textbook: str = '') -> str:
    """
    Build the display tag for a question's origin, e.g. "HKCEE - 2017" or
    "School Exam - School A - 2012". Returns '' when there is no source.
    """
    if not source:
        return ''

    tag = source
    source_type = derive_source_type(source)
    if source_type == SOURCE_TYPE_SCHOOL and school:
        tag += f' - {school}'
    if source_type == SOURCE_TYPE_TEXTBOOK and textbook:
        tag += f' - {textbook}'
    if year:
        tag += f' - {year}'
    return tag


def get_module(module_id: str) -> Optional[Dict[str, object]]:
    return MODULES.get(module_id)
