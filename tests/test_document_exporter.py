import re
from io import BytesIO

import docx
import pytest

from question_bank.utils.document_exporter import (
    ANSWER_LINE, SPACER_TEXT, TEMPLATE_EXAMPLES, WORKSHEET_TITLE, DocumentExporter, ExportError,
    template_filename
)
from question_bank.utils.metadata import relevant_source_fields

OPTION_LINE = re.compile(r'^\s*\(([a-z])\) ')


def paragraph_texts(buffer):
    return [p.text for p in docx.Document(BytesIO(buffer)).paragraphs]


@pytest.fixture
def exporter():
    return DocumentExporter()


def test_worksheet_mc_question_has_lettered_options_and_one_answer_line(exporter, mc_question):
    texts = paragraph_texts(exporter.render_worksheet([mc_question]))

    option_lines = [t for t in texts if OPTION_LINE.match(t)]
    assert [OPTION_LINE.match(t).group(1) for t in option_lines] == ['a', 'b', 'c', 'd']
    assert option_lines[0].strip() == '(a) 4 units'
    assert texts.count(ANSWER_LINE) == 1
    assert SPACER_TEXT not in texts


def test_worksheet_written_question_has_three_spacers_and_no_options(exporter, conventional_question):
    texts = paragraph_texts(exporter.render_worksheet([conventional_question]))

    assert texts.count(SPACER_TEXT) == 3
    assert not [t for t in texts if OPTION_LINE.match(t)]
    assert ANSWER_LINE not in texts


def test_worksheet_numbers_questions_in_order_and_collapses_newlines(exporter, mc_question, conventional_question):
    texts = paragraph_texts(exporter.render_worksheet([conventional_question, mc_question]))

    assert texts[0] == WORKSHEET_TITLE
    assert texts[1] == '1. Solve x^2 = 4.'
    numbered = [t for t in texts if re.match(r'^\d+\. ', t)]
    assert numbered[1] == ('2. In a right-angled triangle, the hypotenuse is 5 units. '
                           'Find the other side.')


def test_worksheet_rejects_empty_input(exporter):
    with pytest.raises(ExportError):
        exporter.render_worksheet([])


def test_worksheet_rejects_questions_missing_fields(exporter, conventional_question):
    broken = dict(conventional_question, content='')

    with pytest.raises(ExportError) as excinfo:
        exporter.render_worksheet([conventional_question, broken])

    assert 'Question 2' in str(excinfo.value)
    assert 'content' in str(excinfo.value)


def test_worksheet_rejects_mc_question_without_options(exporter, mc_question):
    with pytest.raises(ExportError):
        exporter.render_worksheet([dict(mc_question, options=[])])


def test_template_contains_instructions_and_labelled_examples(exporter):
    texts = paragraph_texts(exporter.render_template())

    assert texts[0] == 'Math Question Bank Template'
    assert 'Instructions:' in texts
    assert 'Example Questions:' in texts
    assert [t for t in texts if t.startswith('Question ')] == ['Question 1', 'Question 2', 'Question 3']
    assert 'Year: 2019' in texts
    assert 'Textbook: New Century Mathematics 5A' in texts
    assert "School: St. Paul's College" in texts
    assert ['(a) 4 units', '(b) 6 units', '(c) 8 units', '(d) 10 units'] == [t for t in texts if OPTION_LINE.match(t)]


def test_template_source_detail_lines_follow_source_type(exporter):
    texts = paragraph_texts(exporter.render_template())

    for example in TEMPLATE_EXAMPLES:
        start = texts.index(f"Source: {example['source']}")
        end = texts.index('Topic: ' + example['topic'], start)
        labels = [t.split(':')[0] for t in texts[start + 1:end]]

        assert labels == [field.capitalize() for field in relevant_source_fields(example['source'])]


def test_template_for_module_uses_module_title_and_topics(exporter):
    texts = paragraph_texts(exporter.render_template('module1'))

    assert texts[0] == 'Module 1 (Calculus & Statistics) Question Bank Template'
    assert [t for t in texts if t.startswith('Topic: ')] == [
        'Topic: Differentiation', 'Topic: Integration', 'Topic: Probability'
    ]


def test_template_rejects_unknown_module(exporter):
    with pytest.raises(ExportError):
        exporter.render_template('module9')


def test_template_filename():
    assert template_filename() == 'math_question_template.docx'
    assert template_filename('module2') == 'math_question_template_module2.docx'
