from datetime import datetime
from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, TEXT
from question_bank import mongo
from question_bank.utils.metadata import DEFAULT_MODULE, build_source_tag
from question_bank.utils.validators import sanitize_string

STRING_FIELDS = ['content', 'module', 'source', 'year', 'school', 'textbook',
                 'type', 'topic', 'markingScheme', 'explanation']
SORTABLE_FIELDS = ['createdAt', 'updatedAt', 'topic', 'source', 'type', 'module', 'difficulty', 'year']


def to_object_id(question_id):
    """Convert a string id to ObjectId, returning None when it is not a valid id"""
    if isinstance(question_id, ObjectId):
        return question_id
    if isinstance(question_id, str) and ObjectId.is_valid(question_id):
        return ObjectId(question_id)
    return None


def _source_tag(question):
    return build_source_tag(
        question.get('source'),
        year=question.get('year') or '',
        school=question.get('school') or '',
        textbook=question.get('textbook') or ''
    )


def generate_tags(question, previous=None):
    """
    Tags shown on question cards: the formatted source tag
    (e.g. "School Exam - School A - 2012") followed by the topic.
    Existing tags are kept and nothing is added twice. When ``previous`` is
    the stored version of an updated question, the source tag and topic it
    generated are dropped first.
    """
    tags = list(question.get('tags') or [])
    if previous:
        stale = {_source_tag(previous), previous.get('topic')}
        tags = [tag for tag in tags if tag not in stale]

    source_tag = _source_tag(question)
    if source_tag:
        if source_tag not in tags:
            tags.append(source_tag)
        topic = question.get('topic')
        if topic and topic not in tags:
            tags.append(topic)

    return tags


def prepare_question(question_data, previous=None):
    """Normalize an incoming question document before it is written"""
    question = {}
    for field, value in question_data.items():
        if field in ('_id', 'id', 'preview', 'displayText', 'questionNumber'):
            continue
        question[field] = sanitize_string(value) if field in STRING_FIELDS else value

    question['module'] = question.get('module') or DEFAULT_MODULE
    question['options'] = [sanitize_string(opt) for opt in question.get('options') or []]
    question.setdefault('difficulty', 3)
    question.setdefault('timeEstimate', 5)
    question['tags'] = generate_tags(question, previous)
    return question


def serialize_question(question):
    """Convert a MongoDB document into a JSON-safe dict"""
    serialized = {}
    for field, value in question.items():
        if field == '_id':
            serialized['_id'] = str(value)
        elif isinstance(value, datetime):
            serialized[field] = value.isoformat()
        elif isinstance(value, ObjectId):
            serialized[field] = str(value)
        else:
            serialized[field] = value
    return serialized


class Question:
    """Question model for the question bank"""

    @staticmethod
    def create_indexes():
        mongo.db.questions.create_index([
            ('type', ASCENDING), ('source', ASCENDING), ('topic', ASCENDING), ('module', ASCENDING)
        ])
        mongo.db.questions.create_index('tags')
        mongo.db.questions.create_index('isActive')
        mongo.db.questions.create_index([('content', TEXT)])

    @staticmethod
    def _stamp_new(question, created_by='system'):
        now = datetime.utcnow()
        question['createdAt'] = now
        question['updatedAt'] = now
        question['isActive'] = True
        question['createdBy'] = created_by
        question['lastModifiedBy'] = created_by
        return question

    @staticmethod
    def create_question(question_data):
        """Create a new question"""
        question = Question._stamp_new(prepare_question(question_data))
        result = mongo.db.questions.insert_one(question)
        question['_id'] = result.inserted_id
        return question

    @staticmethod
    def create_many(questions_data):
        """Insert a batch of already validated questions"""
        questions = [Question._stamp_new(prepare_question(data)) for data in questions_data]
        if not questions:
            return []
        result = mongo.db.questions.insert_many(questions)
        for question, inserted_id in zip(questions, result.inserted_ids):
            question['_id'] = inserted_id
        return questions

    @staticmethod
    def find_by_id(question_id):
        """Find question by ID"""
        object_id = to_object_id(question_id)
        if object_id is None:
            return None
        return mongo.db.questions.find_one({'_id': object_id, 'isActive': True})

    @staticmethod
    def find_by_ids(question_ids):
        """Find questions by ID, returned in the order the ids were given"""
        object_ids = [oid for oid in (to_object_id(qid) for qid in question_ids) if oid is not None]
        if not object_ids:
            return []

        found = {q['_id']: q for q in mongo.db.questions.find({'_id': {'$in': object_ids}, 'isActive': True})}
        return [found[oid] for oid in object_ids if oid in found]

    @staticmethod
    def update_question(question_id, update_data, previous=None):
        """Update question data, returns the updated document or None"""
        object_id = to_object_id(question_id)
        if object_id is None:
            return None

        update = prepare_question(update_data, previous)
        update['updatedAt'] = datetime.utcnow()
        update['lastModifiedBy'] = 'system'
        for field in ('createdAt', 'createdBy', 'isActive'):
            update.pop(field, None)

        result = mongo.db.questions.update_one(
            {'_id': object_id, 'isActive': True},
            {'$set': update}
        )
        if result.matched_count == 0:
            return None
        return Question.find_by_id(object_id)

    @staticmethod
    def delete_question(question_id):
        """Soft delete a question"""
        object_id = to_object_id(question_id)
        if object_id is None:
            return False

        result = mongo.db.questions.update_one(
            {'_id': object_id, 'isActive': True},
            {'$set': {'isActive': False, 'updatedAt': datetime.utcnow()}}
        )
        return result.modified_count > 0

    @staticmethod
    def bulk_delete(question_ids):
        """Soft delete several questions, returns how many were deleted"""
        object_ids = [oid for oid in (to_object_id(qid) for qid in question_ids) if oid is not None]
        if not object_ids:
            return 0

        result = mongo.db.questions.update_many(
            {'_id': {'$in': object_ids}, 'isActive': True},
            {'$set': {'isActive': False, 'updatedAt': datetime.utcnow()}}
        )
        return result.modified_count

    @staticmethod
    def build_filter_query(filters):
        query = {'isActive': True}
        for field in ('type', 'topic', 'source', 'module', 'year'):
            if filters.get(field):
                query[field] = filters[field]
        if filters.get('search'):
            query['$text'] = {'$search': filters['search']}
        return query

    @staticmethod
    def filter_questions(filters=None, page=1, limit=10, sort_by='createdAt', sort_order='desc'):
        """Get questions with pagination, filtering and sorting"""
        query = Question.build_filter_query(filters or {})

        if sort_by not in SORTABLE_FIELDS:
            sort_by = 'createdAt'
        direction = DESCENDING if sort_order == 'desc' else ASCENDING
        skip = (page - 1) * limit

        total = mongo.db.questions.count_documents(query)
        questions = list(mongo.db.questions.find(query).sort(sort_by, direction).skip(skip).limit(limit))

        return questions, total

    @staticmethod
    def get_statistics():
        """Count active questions by type, source, topic and module"""
        summary = {
            'totalQuestions': mongo.db.questions.count_documents({'isActive': True})
        }

        for field, key in (('type', 'byType'), ('source', 'bySource'),
                           ('topic', 'byTopic'), ('module', 'byModule')):
            pipeline = [
                {'$match': {'isActive': True}},
                {'$group': {'_id': f'${field}', 'count': {'$sum': 1}}},
                {'$sort': {'count': -1}}
            ]
            summary[key] = {
                (row['_id'] or 'Unspecified'): row['count']
                for row in mongo.db.questions.aggregate(pipeline)
            }

        return summary
