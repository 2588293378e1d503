from flask import Blueprint

bp = Blueprint('questions', __name__)

from question_bank.questions import routes  # noqa: E402,F401
