import logging
from io import BytesIO

from flask import current_app, jsonify, request, send_file

from question_bank.models.question import Question, serialize_question, to_object_id
from question_bank.questions import bp
from question_bank.questions.upload import QuestionUploadProcessor, UploadValidationError
from question_bank.utils.decorators import database_required, json_body_required
from question_bank.utils.document_exporter import (
    DOCX_MIME_TYPE, WORKSHEET_FILENAME, DocumentExporter, ExportError, template_filename
)
from question_bank.utils.document_extractor import DocumentExtractionError
from question_bank.utils.metadata import DSE_TOPICS, MODULES, QUESTION_TYPES, SOURCES
from question_bank.utils.validators import validate_question_data

logger = logging.getLogger(__name__)

exporter = DocumentExporter()


def _docx_response(buffer, filename):
    return send_file(
        BytesIO(buffer),
        mimetype=DOCX_MIME_TYPE,
        as_attachment=True,
        download_name=filename
    )


def _get_id_list(data):
    ids = data.get('ids')
    if not isinstance(ids, list) or len(ids) == 0:
        return None
    return ids


@bp.route('/meta', methods=['GET'])
def get_metadata_options():
    """Values accepted for question metadata fields"""
    return jsonify({
        'sources': SOURCES,
        'types': QUESTION_TYPES,
        'topics': DSE_TOPICS,
        'modules': [
            {'id': module_id, 'title': module['title'], 'topics': module['topics']}
            for module_id, module in MODULES.items()
        ]
    }), 200


@bp.route('/stats/summary', methods=['GET'])
@database_required
def get_statistics():
    """Question counts by type, source, topic and module"""
    try:
        return jsonify(Question.get_statistics()), 200
    except Exception as e:
        logger.error(f"Error fetching statistics: {str(e)}")
        return jsonify({'error': f'Error fetching statistics: {str(e)}'}), 500


@bp.route('/template', methods=['GET'])
def download_template():
    """Download the Word upload template, optionally for one module"""
    module_id = request.args.get('module') or None
    try:
        buffer = exporter.render_template(module_id)
    except ExportError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        logger.error(f"Error generating template: {str(e)}")
        return jsonify({'error': f'Error generating template: {str(e)}'}), 500

    return _docx_response(buffer, template_filename(module_id))


@bp.route('/parse', methods=['POST'])
def parse_document():
    """
    Parse an uploaded Word document into question drafts.
    Nothing is saved; the client reviews the drafts and posts them to /batch.
    """
    processor = QuestionUploadProcessor(current_app.config['MAX_UPLOAD_SIZE'])
    try:
        result = processor.process_upload(request.files.get('file'))
    except UploadValidationError as e:
        return jsonify({'error': str(e)}), 400
    except DocumentExtractionError as e:
        logger.warning(f"Could not extract uploaded document: {str(e)}")
        return jsonify({'error': str(e)}), 422
    except Exception as e:
        logger.error(f"Error parsing file: {str(e)}")
        return jsonify({'error': f'Error parsing file: {str(e)}'}), 500

    logger.info(f"Parsed {result['filename']}: {result['statistics']}")

    return jsonify({
        'message': 'Document parsed successfully',
        'questions': result['questions'],
        'statistics': result['statistics'],
        'warnings': result['warnings']
    }), 200


@bp.route('/filter', methods=['GET'])
@database_required
def filter_questions():
    """Get questions with pagination and filtering"""
    try:
        page = max(int(request.args.get('page', 1)), 1)
        limit = int(request.args.get('limit', current_app.config['DEFAULT_PAGE_SIZE']))
    except ValueError:
        return jsonify({'error': 'page and limit must be integers'}), 400

    limit = min(max(limit, 1), current_app.config['MAX_PAGE_SIZE'])
    filters = {
        field: request.args.get(field)
        for field in ('type', 'topic', 'source', 'module', 'year', 'search')
    }

    try:
        questions, total = Question.filter_questions(
            filters,
            page=page,
            limit=limit,
            sort_by=request.args.get('sortBy', 'createdAt'),
            sort_order=request.args.get('sortOrder', 'desc')
        )
    except Exception as e:
        logger.error(f"Error fetching questions: {str(e)}")
        return jsonify({'error': f'Error fetching questions: {str(e)}'}), 500

    return jsonify({
        'questions': [serialize_question(q) for q in questions],
        'pagination': {
            'page': page,
            'limit': limit,
            'total': total,
            'pages': (total + limit - 1) // limit
        }
    }), 200


@bp.route('/', methods=['POST'])
@database_required
@json_body_required
def create_question():
    """Create a single question"""
    data = request.get_json()

    is_valid, error = validate_question_data(data)
    if not is_valid:
        return jsonify({'error': error}), 400

    try:
        question = Question.create_question(data)
    except Exception as e:
        logger.error(f"Error creating question: {str(e)}")
        return jsonify({'error': f'Error creating question: {str(e)}'}), 500

    return jsonify(serialize_question(question)), 201


@bp.route('/batch', methods=['POST'])
@database_required
@json_body_required
def save_batch():
    """Save reviewed drafts. Nothing is saved unless every question is valid."""
    questions = request.get_json().get('questions')
    if not isinstance(questions, list) or len(questions) == 0:
        return jsonify({'error': 'Invalid questions format'}), 400

    errors = []
    for position, question in enumerate(questions, 1):
        if not isinstance(question, dict):
            errors.append(f'Question {position}: invalid question data')
            continue
        is_valid, error = validate_question_data(question)
        if not is_valid:
            errors.append(f'Question {position}: {error}')

    if errors:
        return jsonify({'error': 'Some questions are invalid', 'errors': errors}), 400

    try:
        saved = Question.create_many(questions)
    except Exception as e:
        logger.error(f"Error saving questions: {str(e)}")
        return jsonify({'error': f'Error saving questions: {str(e)}'}), 500

    logger.info(f"Saved {len(saved)} questions from batch")

    return jsonify({
        'message': 'Questions saved successfully',
        'count': len(saved),
        'questions': [serialize_question(q) for q in saved]
    }), 200


@bp.route('/bulk-delete', methods=['POST'])
@database_required
@json_body_required
def bulk_delete():
    """Delete several questions"""
    ids = _get_id_list(request.get_json())
    if ids is None:
        return jsonify({'error': 'No question IDs provided'}), 400

    try:
        deleted_count = Question.bulk_delete(ids)
    except Exception as e:
        logger.error(f"Error deleting questions: {str(e)}")
        return jsonify({'error': f'Error deleting questions: {str(e)}'}), 500

    return jsonify({
        'message': 'Questions deleted successfully',
        'deletedCount': deleted_count
    }), 200


@bp.route('/export', methods=['POST'])
@database_required
@json_body_required
def export_questions():
    """Export selected questions as JSON"""
    ids = _get_id_list(request.get_json())
    if ids is None:
        return jsonify({'error': 'No question IDs provided'}), 400

    try:
        questions = Question.find_by_ids(ids)
    except Exception as e:
        logger.error(f"Error exporting questions: {str(e)}")
        return jsonify({'error': f'Error exporting questions: {str(e)}'}), 500

    return jsonify([serialize_question(q) for q in questions]), 200


@bp.route('/export-word', methods=['POST'])
@database_required
@json_body_required
def export_word():
    """Export selected questions as a Word worksheet"""
    ids = _get_id_list(request.get_json())
    if ids is None:
        return jsonify({'error': 'No question IDs provided'}), 400

    try:
        questions = Question.find_by_ids(ids)
        if not questions:
            return jsonify({'error': 'No matching questions found'}), 404
        buffer = exporter.render_worksheet(questions)
    except ExportError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        logger.error(f"Error exporting questions as Word: {str(e)}")
        return jsonify({'error': f'Error exporting questions as Word: {str(e)}'}), 500

    return _docx_response(buffer, WORKSHEET_FILENAME)


@bp.route('/<question_id>', methods=['GET'])
@database_required
def get_question(question_id):
    """Get a single question"""
    if to_object_id(question_id) is None:
        return jsonify({'error': 'Invalid question ID'}), 400

    question = Question.find_by_id(question_id)
    if not question:
        return jsonify({'error': 'Question not found'}), 404

    return jsonify(serialize_question(question)), 200


@bp.route('/<question_id>', methods=['PUT'])
@database_required
@json_body_required
def update_question(question_id):
    """Update a question"""
    if to_object_id(question_id) is None:
        return jsonify({'error': 'Invalid question ID'}), 400

    existing = Question.find_by_id(question_id)
    if not existing:
        return jsonify({'error': 'Question not found'}), 404

    merged = {**existing, **request.get_json()}
    is_valid, error = validate_question_data(merged)
    if not is_valid:
        return jsonify({'error': error}), 400

    try:
        question = Question.update_question(question_id, merged, previous=existing)
    except Exception as e:
        logger.error(f"Error updating question: {str(e)}")
        return jsonify({'error': f'Error updating question: {str(e)}'}), 500

    if not question:
        return jsonify({'error': 'Question not found'}), 404

    return jsonify(serialize_question(question)), 200


@bp.route('/<question_id>', methods=['DELETE'])
@database_required
def delete_question(question_id):
    """Delete a question"""
    if to_object_id(question_id) is None:
        return jsonify({'error': 'Invalid question ID'}), 400

    try:
        deleted = Question.delete_question(question_id)
    except Exception as e:
        logger.error(f"Error deleting question: {str(e)}")
        return jsonify({'error': f'Error deleting question: {str(e)}'}), 500

    if not deleted:
        return jsonify({'error': 'Question not found'}), 404

    return jsonify({'message': 'Question deleted successfully'}), 200
