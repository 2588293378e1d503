import logging
from io import BytesIO
from typing import Any, Dict, List, Optional, Sequence

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Pt

from .metadata import SOURCES, QUESTION_TYPE_MC, get_module, relevant_source_fields
from .question_parser import index_to_option_letter
from .validators import validate_required_fields

logger = logging.getLogger(__name__)

DOCX_MIME_TYPE = 'application/vnd.openxmlformats-officedocument.wordprocessingml.document'
TEMPLATE_FILENAME = 'math_question_template.docx'
WORKSHEET_FILENAME = 'math_questions.docx'

WORKSHEET_TITLE = 'Math Worksheet'
ANSWER_LINE = 'Answer: __________'
SPACER_TEXT = ' '
WRITTEN_ANSWER_SPACERS = 3

# Worked examples in the upload format. 'topic_slot' picks the module topic
# used when a module-specific template is requested.
TEMPLATE_EXAMPLES = [
    {
        'content': [
            'Solve the quadratic equation: $x^2 + 5x + 6 = 0$',
            'Show your working and find the values of x.',
        ],
        'source': 'HKDSE',
        'year': '2019',
        'topic': 'Quadratic Equations',
        'topic_slot': 0,
        'type': 'Conventional',
        'correct_answer': 'x = -2, x = -3',
        'marking_scheme': '1. Factorize $x^2 + 5x + 6 = 0$  2. (x+2)(x+3)=0  3. x=-2, -3',
    },
    {
        'content': ['What is the derivative of $f(x) = 3x^2 + 2x - 1$?'],
        'source': 'Textbook',
        'textbook': 'New Century Mathematics 5A',
        'topic': 'Calculus',
        'topic_slot': 1,
        'type': 'Conventional',
        'correct_answer': '6x + 2',
        'marking_scheme': "1. Differentiate $f(x)$  2. $f'(x) = 6x + 2$",
    },
    {
        'content': [
            'In a right-angled triangle, if the hypotenuse is 5 units and one side is 3 units, '
            'what is the length of the other side?'
        ],
        'source': 'School Exam',
        'school': "St. Paul's College",
        'year': '2021',
        'topic': 'Geometry',
        'topic_slot': 2,
        'type': 'MC',
        'options': ['4 units', '6 units', '8 units', '10 units'],
        'correct_answer': 'a',
        'marking_scheme': "1. Use Pythagoras' theorem: $c^2 = a^2 + b^2$  2. $5^2 = 3^2 + b^2$  3. $b = 4$ units",
    },
]

TEMPLATE_INSTRUCTIONS = [
    "Each question should start with 'Question X' where X is the question number",
    "Write the question content on the lines after the question number",
    f"Specify Source ({', '.join(SOURCES)}) after the question content",
    "For HKDSE, HKCEE and HKALE questions add 'Year:'; for School Exam and School Mock add "
    "'School:' and 'Year:'; for Textbook questions add 'Textbook:'",
    "Specify Topic (e.g., Quadratic Equations, Trigonometry, etc.) after the Source",
    "Specify Type (Conventional or MC) after the Topic",
    "For multiple choice questions, add options with (a), (b), (c), etc.",
    "End with Correct Answer: [option letter or answer]",
    "Add a Marking Scheme section after the correct answer for each question. "
    "It continues until the next question.",
]


class ExportError(ValueError):
    """Raised before any document is built when the export input is unusable."""


class DocumentExporter:
    """
    Builds the Word documents handed out by the question bank: the upload
    template (which doubles as the format reference for the question parser)
    and answer-sheet worksheets for a selection of stored questions.
    """

    def render_template(self, module_id: Optional[str] = None) -> bytes:
        module = None
        if module_id:
            module = get_module(module_id)
            if module is None:
                raise ExportError(f"Unknown module: {module_id}")

        doc = Document()
        title = f"{module['title']} Question Bank Template" if module else 'Math Question Bank Template'
        self._add_heading(doc, title, level=1, space_after=10)

        if module:
            self._add_paragraph(doc, f"Example topics: {', '.join(module['topics'])}", space_after=10)

        self._add_heading(doc, 'Instructions:', level=2, space_after=5)
        for number, instruction in enumerate(TEMPLATE_INSTRUCTIONS, 1):
            space_after = 10 if number == len(TEMPLATE_INSTRUCTIONS) else 5
            self._add_paragraph(doc, f"{number}. {instruction}", space_after=space_after)

        self._add_heading(doc, 'Example Questions:', level=2, space_after=10)
        for number, example in enumerate(TEMPLATE_EXAMPLES, 1):
            topic = example['topic']
            if module:
                topics = module['topics']
                topic = topics[example['topic_slot'] % len(topics)]
            self._add_example(doc, number, example, topic)

        logger.info(f"Generated question template (module: {module_id or 'all'})")
        return self._to_bytes(doc)

    def render_worksheet(self, questions: Sequence[Dict[str, Any]]) -> bytes:
        self._validate_worksheet_input(questions)

        doc = Document()
        heading = doc.add_heading(WORKSHEET_TITLE, level=0)
        heading.alignment = WD_ALIGN_PARAGRAPH.CENTER
        heading.paragraph_format.space_after = Pt(20)

        for number, question in enumerate(questions, 1):
            content = question['content'].replace('\n', ' ')
            self._add_paragraph(doc, f"{number}. {content}", space_after=10)

            if question['type'] == QUESTION_TYPE_MC:
                for index, option in enumerate(question['options']):
                    self._add_paragraph(doc, f"   ({index_to_option_letter(index)}) {option}", space_after=5)
                self._add_paragraph(doc, ANSWER_LINE, space_after=15)
            else:
                for _ in range(WRITTEN_ANSWER_SPACERS):
                    self._add_paragraph(doc, SPACER_TEXT, space_after=10)

        logger.info(f"Generated worksheet with {len(questions)} questions")
        return self._to_bytes(doc)

    def _validate_worksheet_input(self, questions: Sequence[Dict[str, Any]]):
        if not questions:
            raise ExportError("No questions to export")

        errors: List[str] = []
        for position, question in enumerate(questions, 1):
            is_valid, missing = validate_required_fields(question, ['content', 'type'])
            if not is_valid:
                errors.append(f"Question {position}: missing {', '.join(missing)}")
                continue
            if question['type'] == QUESTION_TYPE_MC and not question.get('options'):
                errors.append(f"Question {position}: multiple choice question has no options")

        if errors:
            raise ExportError('; '.join(errors))

    def _add_example(self, doc, number: int, example: Dict[str, Any], topic: str):
        self._add_heading(doc, f"Question {number}", level=3, space_after=5)
        for line in example['content']:
            self._add_paragraph(doc, line, space_after=5)

        self._add_paragraph(doc, f"Source: {example['source']}", space_after=5)
        for field in relevant_source_fields(example['source']):
            self._add_paragraph(doc, f"{field.capitalize()}: {example[field]}", space_after=5)
        self._add_paragraph(doc, f"Topic: {topic}", space_after=5)
        self._add_paragraph(doc, f"Type: {example['type']}", space_after=5)

        for index, option in enumerate(example.get('options', [])):
            self._add_paragraph(doc, f"({index_to_option_letter(index)}) {option}", space_after=5)

        self._add_paragraph(doc, f"Correct Answer: {example['correct_answer']}", space_after=5)
        self._add_paragraph(doc, f"Marking Scheme: {example['marking_scheme']}", space_after=20)

    @staticmethod
    def _add_heading(doc, text: str, level: int, space_after: int):
        heading = doc.add_heading(text, level=level)
        heading.paragraph_format.space_after = Pt(space_after)
        return heading

    @staticmethod
    def _add_paragraph(doc, text: str, space_after: int):
        paragraph = doc.add_paragraph(text)
        paragraph.paragraph_format.space_after = Pt(space_after)
        return paragraph

    @staticmethod
    def _to_bytes(doc) -> bytes:
        buffer = BytesIO()
        doc.save(buffer)
        return buffer.getvalue()


def render_template(module_id: Optional[str] = None) -> bytes:
    return DocumentExporter().render_template(module_id)


def render_worksheet(questions: Sequence[Dict[str, Any]]) -> bytes:
    return DocumentExporter().render_worksheet(questions)


def template_filename(module_id: Optional[str] = None) -> str:
    if module_id:
        return f"math_question_template_{module_id}.docx"
    return TEMPLATE_FILENAME
