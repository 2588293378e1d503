from .metadata import MODULES, SOURCES, QUESTION_TYPES, QUESTION_TYPE_MC

REQUIRED_QUESTION_FIELDS = ['content', 'module', 'source', 'type', 'topic', 'correctAnswer']


def validate_required_fields(data, required_fields):
    """
    Validate that required fields are present in data.
    Returns tuple (is_valid, missing_fields)
    """
    missing = []
    for field in required_fields:
        if field not in data or data[field] is None or data[field] == '':
            missing.append(field)

    return len(missing) == 0, missing


def sanitize_string(value, max_length=None):
    """
    Sanitize a string value by stripping whitespace
    and optionally truncating to max_length.
    """
    if not isinstance(value, str):
        return value

    value = value.strip()

    if max_length and len(value) > max_length:
        value = value[:max_length]

    return value


def validate_question_data(question_data):
    """
    Validate a question before it is stored.
    Returns tuple (is_valid, error_message)
    """
    is_valid, missing = validate_required_fields(question_data, REQUIRED_QUESTION_FIELDS)

    if not is_valid:
        return False, f"Missing required fields: {', '.join(missing)}"

    if question_data['module'] not in MODULES:
        return False, f"Invalid module. Must be one of: {', '.join(MODULES)}"

    if question_data['source'] not in SOURCES:
        return False, f"Invalid source. Must be one of: {', '.join(SOURCES)}"

    question_type = question_data['type']
    if question_type not in QUESTION_TYPES:
        return False, f"Invalid question type. Must be one of: {', '.join(QUESTION_TYPES)}"

    if question_type == QUESTION_TYPE_MC:
        options = question_data.get('options') or []
        if len(options) < 2:
            return False, "Multiple choice questions must have at least 2 options"

        correct_answer = question_data['correctAnswer']
        if (not isinstance(correct_answer, int) or isinstance(correct_answer, bool)
                or correct_answer < 0 or correct_answer >= len(options)):
            return False, "Invalid correct answer index for multiple choice question"

    difficulty = question_data.get('difficulty')
    if difficulty is not None:
        if not isinstance(difficulty, (int, float)) or not 1 <= difficulty <= 5:
            return False, "Difficulty must be between 1 and 5"

    time_estimate = question_data.get('timeEstimate')
    if time_estimate is not None:
        if not isinstance(time_estimate, (int, float)) or time_estimate < 1:
            return False, "Time estimate must be at least 1 minute"

    return True, None
