import pytest

import question_bank
from question_bank import create_app
from question_bank.utils.document_exporter import render_template


@pytest.fixture
def app():
    app = create_app('testing')
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def fake_db(app, monkeypatch):
    """Pretend a database is connected; tests patch the Question methods they hit."""
    monkeypatch.setattr(question_bank, 'mongo_db', object())


@pytest.fixture(scope='session')
def template_docx():
    return render_template()


@pytest.fixture
def mc_question():
    return {
        'content': 'In a right-angled triangle, the hypotenuse is 5 units.\nFind the other side.',
        'module': 'compulsory',
        'source': 'School Exam',
        'school': 'School A',
        'year': '2012',
        'type': 'MC',
        'topic': 'Geometry',
        'options': ['4 units', '6 units', '8 units', '10 units'],
        'correctAnswer': 0,
        'markingScheme': "Use Pythagoras' theorem"
    }


@pytest.fixture
def conventional_question():
    return {
        'content': 'Solve x^2 = 4.',
        'module': 'compulsory',
        'source': 'HKDSE',
        'year': '2019',
        'type': 'Conventional',
        'topic': 'Quadratic Equations',
        'options': [],
        'correctAnswer': 'x = 2, -2',
        'markingScheme': 'factor and solve'
    }
