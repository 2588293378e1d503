"""
Line-oriented parser for question-bank upload documents.

The upload template is a loosely formatted Word document::

    Question 1
    Solve $x^2 + 5x + 6 = 0$.
    Source: HKDSE
    Topic: Quadratic Equations
    Type: MC
    (a) x = -2 or x = -3
    (b) x = 2 or x = 3
    Correct Answer: a
    Marking Scheme: Factorise (x + 2)(x + 3) = 0

Parsing happens in two steps. ``classify_line`` tags each line with a
``LineKind`` (question marker, marking-scheme marker, metadata field, option,
plain text). ``QuestionParser`` then runs those tags through a small state
machine that accumulates each question's content and marking scheme, and
uses ``scan_option_block`` to read option blocks ahead of the cursor.

The parser never raises on malformed input. Anything it cannot place is
ignored and the drafts are reviewed by a person before they are saved.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .metadata import QUESTION_TYPE_CONVENTIONAL, QUESTION_TYPE_MC

logger = logging.getLogger(__name__)

QUESTION_PATTERN = re.compile(r'^Question\s+(\S+)')
OPTION_PATTERN = re.compile(r'^\(([a-zA-Z])\)\s*(.*)')

MARKING_SCHEME_LABEL = 'Marking Scheme:'
CORRECT_ANSWER_FIELD = 'correct_answer'

# Label -> QuestionDraft attribute
METADATA_LABELS = {
    'Source:': 'source',
    'Topic:': 'topic',
    'Type:': 'type',
    'Year:': 'year',
    'School:': 'school',
    'Textbook:': 'textbook',
    'Correct Answer:': CORRECT_ANSWER_FIELD,
}


class LineKind(Enum):
    QUESTION_MARKER = 'question_marker'
    MARKING_SCHEME_MARKER = 'marking_scheme_marker'
    METADATA_FIELD = 'metadata_field'
    OPTION_LINE = 'option_line'
    TEXT = 'text'


class ParserState(Enum):
    IDLE = 'idle'
    COLLECTING_CONTENT = 'collecting_content'
    COLLECTING_MARKING_SCHEME = 'collecting_marking_scheme'
    # A metadata line closed the open buffer; plain text is dropped until
    # a marking scheme or the next question starts.
    READING_FIELDS = 'reading_fields'


@dataclass
class TaggedLine:
    kind: LineKind
    text: str
    value: str = ''
    field_name: Optional[str] = None
    label: Optional[str] = None


def classify_line(line: str) -> TaggedLine:
    """Tag a single trimmed line. Rules are checked in priority order."""
    match = QUESTION_PATTERN.match(line)
    if match:
        return TaggedLine(LineKind.QUESTION_MARKER, line, value=match.group(1))

    if line.startswith(MARKING_SCHEME_LABEL):
        return TaggedLine(LineKind.MARKING_SCHEME_MARKER, line,
                          value=line[len(MARKING_SCHEME_LABEL):].strip())

    for label, field_name in METADATA_LABELS.items():
        if line.startswith(label):
            return TaggedLine(LineKind.METADATA_FIELD, line,
                              value=line[len(label):].strip(), field_name=field_name)

    match = OPTION_PATTERN.match(line)
    if match:
        return TaggedLine(LineKind.OPTION_LINE, line,
                          value=match.group(2).strip(), label=match.group(1))

    return TaggedLine(LineKind.TEXT, line, value=line)


def flush_lines(lines: Iterable[str]) -> str:
    """
    Join buffered lines into a field value.

    Lines that are blank after trimming are dropped before joining, so
    paragraph breaks inside a question body do not survive. Stored questions
    rely on this exact joined form.
    """
    return '\n'.join(line for line in lines if line.strip()).strip()


def answer_letter_to_index(answer: str) -> int:
    """Map an option letter to its zero-based index ('a' -> 0, 'B' -> 1).

    Only the first character is used and the result is not range checked.
    """
    return ord(answer.lower()[0]) - ord('a')


def index_to_option_letter(index: int) -> str:
    return chr(ord('a') + index)


def scan_option_block(lines: Sequence[str], start: int) -> Tuple[List[Dict[str, str]], int]:
    """
    Read the contiguous option block beginning at ``lines[start]``.

    Blank lines inside or after the block are skipped. Returns the
    ``{'label', 'text'}`` pairs found and the number of lines consumed, so the
    caller can move its cursor to the first line after the block.
    """
    options = []
    cursor = start
    while cursor < len(lines):
        line = lines[cursor]
        if not line:
            cursor += 1
            continue
        match = OPTION_PATTERN.match(line)
        if not match:
            break
        options.append({'label': match.group(1).strip(), 'text': match.group(2).strip()})
        cursor += 1
    return options, cursor - start


@dataclass
class QuestionDraft:
    """A parsed question awaiting review. ``to_dict`` gives the API shape."""

    question_number: str
    content: str = ''
    source: str = ''
    topic: str = ''
    type: str = ''
    year: str = ''
    school: str = ''
    textbook: str = ''
    options: List[str] = field(default_factory=list)
    correct_answer: Union[int, str] = ''
    marking_scheme: str = ''
    formatted_options: List[Dict[str, str]] = field(default_factory=list)
    correct_answer_label: str = ''

    @property
    def display_text(self) -> str:
        options_text = '\n'.join(f"({opt['label']}) {opt['text']}" for opt in self.formatted_options)
        return (f"Question {self.question_number}\n\n{self.content}\n\n"
                f"{options_text}\n\nCorrect Answer: {self.correct_answer_label}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'questionNumber': self.question_number,
            'content': self.content,
            'source': self.source,
            'topic': self.topic,
            'type': self.type,
            'year': self.year,
            'school': self.school,
            'textbook': self.textbook,
            'options': list(self.options),
            'correctAnswer': self.correct_answer,
            'markingScheme': self.marking_scheme,
            'preview': {
                'formattedContent': self.content,
                'formattedOptions': [dict(opt) for opt in self.formatted_options],
                'correctAnswerLabel': self.correct_answer_label,
            },
            'displayText': self.display_text,
        }


class _DraftContext:
    """Mutable parsing state for the question currently being read."""

    def __init__(self, question_number: str):
        self.draft = QuestionDraft(question_number=question_number)
        self.state = ParserState.COLLECTING_CONTENT
        self.content_lines: List[str] = []
        self.marking_scheme_lines: List[str] = []

    def flush(self):
        if self.state == ParserState.COLLECTING_CONTENT:
            self.draft.content = flush_lines(self.content_lines)
        elif self.state == ParserState.COLLECTING_MARKING_SCHEME:
            self.draft.marking_scheme = flush_lines(self.marking_scheme_lines)

    def start_marking_scheme(self, first_line: str):
        if self.state == ParserState.COLLECTING_CONTENT:
            self.draft.content = flush_lines(self.content_lines)
        self.state = ParserState.COLLECTING_MARKING_SCHEME
        self.marking_scheme_lines = [first_line]

    def assign_field(self, field_name: str, value: str):
        self.flush()
        if self.state == ParserState.COLLECTING_MARKING_SCHEME:
            self.marking_scheme_lines = []
        self.state = ParserState.READING_FIELDS

        if field_name == CORRECT_ANSWER_FIELD:
            self._assign_correct_answer(value)
        else:
            setattr(self.draft, field_name, value)

    def _assign_correct_answer(self, answer: str):
        draft = self.draft
        if draft.type == QUESTION_TYPE_MC:
            if answer:
                draft.correct_answer = answer_letter_to_index(answer)
                draft.correct_answer_label = answer.lower()
            else:
                draft.correct_answer = ''
                draft.correct_answer_label = ''
        else:
            draft.correct_answer = answer
            draft.correct_answer_label = answer

    def set_options(self, options: List[Dict[str, str]]):
        if not options:
            return
        self.draft.options = [opt['text'] for opt in options]
        self.draft.formatted_options = options
        if self.draft.type.lower() != QUESTION_TYPE_CONVENTIONAL.lower():
            self.draft.type = QUESTION_TYPE_MC

    def append_text(self, line: str):
        if self.state == ParserState.COLLECTING_CONTENT:
            self.content_lines.append(line)
        elif self.state == ParserState.COLLECTING_MARKING_SCHEME:
            self.marking_scheme_lines.append(line)

    def finalize(self) -> QuestionDraft:
        self.flush()
        draft = self.draft
        if draft.type != QUESTION_TYPE_MC and draft.options:
            logger.debug(f"Question {draft.question_number}: dropping {len(draft.options)} options "
                         f"for non-MC type '{draft.type}'")
            draft.options = []
            draft.formatted_options = []
        return draft


class QuestionParser:
    """
    Turns extracted document lines into ``QuestionDraft`` records.

    A parser instance keeps no state between calls; each ``parse`` builds its
    own draft contexts.
    """

    def parse(self, lines: Iterable[Optional[str]]) -> List[QuestionDraft]:
        lines = [(line or '').strip() for line in lines]
        drafts: List[QuestionDraft] = []
        context: Optional[_DraftContext] = None

        index = 0
        while index < len(lines):
            line = lines[index]
            consumed = 1
            try:
                tagged = classify_line(line)

                if tagged.kind == LineKind.QUESTION_MARKER:
                    if context is not None:
                        drafts.append(context.finalize())
                    context = _DraftContext(tagged.value)
                    logger.debug(f"Line {index}: started question {tagged.value}")

                elif context is None:
                    logger.debug(f"Line {index}: ignoring text before first question")

                elif tagged.kind == LineKind.MARKING_SCHEME_MARKER:
                    context.start_marking_scheme(tagged.value)
                    logger.debug(f"Line {index}: marking scheme started")

                elif tagged.kind == LineKind.METADATA_FIELD:
                    context.assign_field(tagged.field_name, tagged.value)
                    logger.debug(f"Line {index}: {tagged.field_name} = {tagged.value!r}")

                elif tagged.kind == LineKind.OPTION_LINE:
                    options, consumed = scan_option_block(lines, index)
                    context.set_options(options)
                    logger.debug(f"Line {index}: read {len(options)} options over {consumed} lines")

                else:
                    context.append_text(line)

            except Exception as e:
                logger.warning(f"Line {index}: could not classify {line[:50]!r}, ignoring it: {str(e)}")
                consumed = 1

            index += max(consumed, 1)

        if context is not None:
            drafts.append(context.finalize())

        logger.info(f"Parsing complete: {len(drafts)} questions from {len(lines)} lines")
        return drafts


def parse_lines(lines: Iterable[Optional[str]]) -> List[QuestionDraft]:
    return QuestionParser().parse(lines)
