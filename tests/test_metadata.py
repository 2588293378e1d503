import pytest

from question_bank.utils.metadata import build_source_tag, derive_source_type, relevant_source_fields


@pytest.mark.parametrize('source,expected', [
    ('HKDSE', 'exam'),
    ('HKCEE', 'exam'),
    ('HKALE', 'exam'),
    ('School Exam', 'school'),
    ('School Mock', 'school'),
    ('Textbook', 'textbook'),
    ('hkdse', ''),
    ('', ''),
    (None, ''),
])
def test_derive_source_type(source, expected):
    assert derive_source_type(source) == expected


def test_relevant_source_fields():
    assert relevant_source_fields('HKCEE') == ['year']
    assert relevant_source_fields('School Mock') == ['school', 'year']
    assert relevant_source_fields('Textbook') == ['textbook']
    assert relevant_source_fields('Other') == []


def test_build_source_tag():
    assert build_source_tag('HKCEE', year='2017') == 'HKCEE - 2017'
    assert build_source_tag('School Exam', year='2012', school='School A') == 'School Exam - School A - 2012'
    assert build_source_tag('Textbook', textbook='NSS Maths 4A') == 'Textbook - NSS Maths 4A'
    assert build_source_tag('HKDSE', school='ignored') == 'HKDSE'
    assert build_source_tag('') == ''
