from io import BytesIO

from bson import ObjectId

from question_bank.models.question import Question, prepare_question
from question_bank.utils.document_exporter import DOCX_MIME_TYPE


def upload(client, content, filename):
    return client.post(
        '/api/questions/parse',
        data={'file': (BytesIO(content), filename)},
        content_type='multipart/form-data'
    )


def test_health_reports_disconnected_database(client):
    r = client.get('/api/health')
    assert r.status_code == 200
    assert r.get_json()['database'] == 'disconnected'


def test_meta_lists_sources_and_modules(client):
    r = client.get('/api/questions/meta')
    assert r.status_code == 200
    body = r.get_json()
    assert 'HKDSE' in body['sources']
    assert [m['id'] for m in body['modules']] == ['compulsory', 'module1', 'module2']


def test_template_download(client):
    r = client.get('/api/questions/template')
    assert r.status_code == 200
    assert r.mimetype == DOCX_MIME_TYPE
    assert 'math_question_template.docx' in r.headers['Content-Disposition']


def test_template_download_for_unknown_module(client):
    r = client.get('/api/questions/template?module=nope')
    assert r.status_code == 400
    assert 'Unknown module' in r.get_json()['error']


def test_parse_requires_file(client):
    r = client.post('/api/questions/parse', data={}, content_type='multipart/form-data')
    assert r.status_code == 400


def test_parse_rejects_non_word_file(client):
    r = upload(client, b'Question 1', 'questions.txt')
    assert r.status_code == 400
    assert '.txt' in r.get_json()['error']


def test_parse_unreadable_document(client):
    r = upload(client, b'not really a docx', 'questions.docx')
    assert r.status_code == 422


def test_parse_template_document(client, template_docx):
    r = upload(client, template_docx, 'math_question_template.docx')
    assert r.status_code == 200

    body = r.get_json()
    assert body['statistics']['total_parsed'] == 3
    assert body['statistics']['mc_parsed'] == 1
    assert body['warnings'] == []

    mc = body['questions'][2]
    assert mc['type'] == 'MC'
    assert mc['correctAnswer'] == 0
    assert mc['displayText'].startswith('Question 3')


def test_parse_accepts_non_ascii_filename(client, template_docx):
    r = upload(client, template_docx, '數學題目.docx')

    assert r.status_code == 200
    assert r.get_json()['statistics']['total_parsed'] == 3


def test_parse_rejects_non_ascii_filename_with_wrong_extension(client):
    r = upload(client, b'Question 1', '數學題目.pdf')

    assert r.status_code == 400
    assert '.pdf' in r.get_json()['error']


def test_batch_requires_database(client, conventional_question):
    r = client.post('/api/questions/batch', json={'questions': [conventional_question]})
    assert r.status_code == 503


def test_batch_rejects_invalid_questions_without_saving(client, fake_db, monkeypatch, mc_question):
    calls = []
    monkeypatch.setattr(Question, 'create_many', staticmethod(lambda questions: calls.append(questions)))

    bad = dict(mc_question, correctAnswer=7)
    r = client.post('/api/questions/batch', json={'questions': [mc_question, bad]})

    assert r.status_code == 400
    assert r.get_json()['errors'] == ['Question 2: Invalid correct answer index for multiple choice question']
    assert calls == []


def test_batch_saves_valid_questions(client, fake_db, monkeypatch, mc_question, conventional_question):
    def create_many(questions):
        return [dict(q, _id=ObjectId()) for q in questions]

    monkeypatch.setattr(Question, 'create_many', staticmethod(create_many))

    r = client.post('/api/questions/batch', json={'questions': [mc_question, conventional_question]})

    assert r.status_code == 200
    body = r.get_json()
    assert body['count'] == 2
    assert all(isinstance(q['_id'], str) for q in body['questions'])


def test_export_word_requires_ids(client, fake_db):
    r = client.post('/api/questions/export-word', json={'ids': []})
    assert r.status_code == 400


def test_export_word_returns_worksheet(client, fake_db, monkeypatch, mc_question):
    monkeypatch.setattr(Question, 'find_by_ids', staticmethod(lambda ids: [dict(mc_question, _id=ObjectId())]))

    r = client.post('/api/questions/export-word', json={'ids': [str(ObjectId())]})

    assert r.status_code == 200
    assert r.mimetype == DOCX_MIME_TYPE
    assert 'math_questions.docx' in r.headers['Content-Disposition']


def test_export_word_with_no_matches(client, fake_db, monkeypatch):
    monkeypatch.setattr(Question, 'find_by_ids', staticmethod(lambda ids: []))

    r = client.post('/api/questions/export-word', json={'ids': [str(ObjectId())]})
    assert r.status_code == 404


def test_get_question_with_invalid_id(client, fake_db):
    r = client.get('/api/questions/not-an-object-id')
    assert r.status_code == 400


def test_filter_rejects_bad_pagination(client, fake_db):
    r = client.get('/api/questions/filter?page=abc')
    assert r.status_code == 400


def test_update_replaces_stale_source_tag(client, fake_db, monkeypatch, conventional_question):
    oid = ObjectId()
    stored = dict(conventional_question, _id=oid, tags=['HKDSE - 2019', 'Quadratic Equations', 'revision'])

    def update_question(question_id, update_data, previous=None):
        return dict(prepare_question(update_data, previous), _id=oid)

    monkeypatch.setattr(Question, 'find_by_id', staticmethod(lambda question_id: dict(stored)))
    monkeypatch.setattr(Question, 'update_question', staticmethod(update_question))

    r = client.put(f'/api/questions/{oid}', json={'source': 'HKCEE', 'year': '2008'})

    assert r.status_code == 200
    assert r.get_json()['tags'] == ['revision', 'HKCEE - 2008', 'Quadratic Equations']
