"""The generated upload template must parse back into its own worked examples."""
import pytest

from question_bank.utils.document_exporter import render_template
from question_bank.utils.document_extractor import DocumentExtractionError, extract_lines
from question_bank.utils.question_parser import parse_lines


def test_template_parses_into_worked_examples(template_docx):
    drafts = parse_lines(extract_lines(template_docx, 'math_question_template.docx'))

    assert [d.question_number for d in drafts] == ['1', '2', '3']

    first, second, third = drafts
    assert first.content == ('Solve the quadratic equation: $x^2 + 5x + 6 = 0$\n'
                             'Show your working and find the values of x.')
    assert first.source == 'HKDSE'
    assert first.year == '2019'
    assert first.type == 'Conventional'
    assert first.correct_answer == 'x = -2, x = -3'
    assert first.marking_scheme.startswith('1. Factorize')

    assert second.source == 'Textbook'
    assert second.textbook == 'New Century Mathematics 5A'
    assert second.year == ''
    assert second.correct_answer == '6x + 2'

    assert third.type == 'MC'
    assert third.school == "St. Paul's College"
    assert third.options == ['4 units', '6 units', '8 units', '10 units']
    assert third.correct_answer == 0
    assert 'Question' not in third.marking_scheme


def test_module_template_round_trip_keeps_module_topics():
    drafts = parse_lines(extract_lines(render_template('module2'), 'template.docx'))

    assert [d.topic for d in drafts] == ['Advanced Algebra', 'Calculus Methods', 'Mathematical Induction']


def test_extractor_rejects_unsupported_extension(template_docx):
    with pytest.raises(DocumentExtractionError):
        extract_lines(template_docx, 'questions.pdf')


def test_extractor_rejects_unreadable_document():
    with pytest.raises(DocumentExtractionError):
        extract_lines(b'this is not a zip archive', 'questions.docx')


def test_extractor_rejects_empty_upload():
    with pytest.raises(DocumentExtractionError):
        extract_lines(b'', 'questions.docx')
