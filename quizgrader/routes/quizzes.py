"""
Quiz Routes
JSON API for quizzes, attempts, essay grading and results
"""
from flask import Blueprint, request, jsonify

from quizgrader.extensions import db
from quizgrader.repositories import QuizRepository
from quizgrader.schemas import (
    GradeEssayRequest, OptionCreateRequest, OptionUpdate, QuestionCreateRequest, QuestionUpdate,
    QuizCreate, QuizUpdate, StartAttemptRequest, SubmitAttemptRequest, parse
)
from quizgrader.services import AttemptService, QuizService, ResultsService
from quizgrader.utils import get_current_user_id, require_user

quiz_bp = Blueprint('quizzes', __name__)


def _repository():
    return QuizRepository(db.session)


def _json_body():
    return request.get_json(silent=True)


# ======================= QUIZZES ===========================

@quiz_bp.route('/classroom/<int:classroom_id>', methods=['GET'])
@require_user
def classroom_quizzes(classroom_id):
    """Quizzes of a classroom, newest first"""
    quizzes = QuizService(_repository()).list_classroom_quizzes(
        get_current_user_id(), classroom_id
    )
    return jsonify([q.to_dict() for q in quizzes]), 200


@quiz_bp.route('/classroom/<int:classroom_id>/average-score', methods=['GET'])
@require_user
def classroom_average_score(classroom_id):
    """Average quiz score of a student (defaults to the caller)"""
    caller_id = get_current_user_id()
    student_id = request.args.get('userId', default=caller_id, type=int)
    average = ResultsService(_repository()).average_for(caller_id, student_id, classroom_id)
    return jsonify({
        "classroom_id": classroom_id,
        "user_id": student_id,
        "quiz_avg_score": average,
    }), 200


@quiz_bp.route('', methods=['POST'], strict_slashes=False)
@require_user
def create_quiz():
    data = parse(QuizCreate, _json_body())
    quiz = QuizService(_repository()).create_quiz(get_current_user_id(), data)
    return jsonify(quiz.to_dict(include_questions=True, reveal_answers=True)), 201


@quiz_bp.route('/<int:quiz_id>', methods=['GET'])
@require_user
def get_quiz(quiz_id):
    quiz, is_teacher = QuizService(_repository()).get_quiz(get_current_user_id(), quiz_id)
    return jsonify(quiz.to_dict(include_questions=True, reveal_answers=is_teacher)), 200


@quiz_bp.route('/<int:quiz_id>/publish', methods=['POST'])
@require_user
def publish_quiz(quiz_id):
    quiz = QuizService(_repository()).publish_quiz(get_current_user_id(), quiz_id)
    return jsonify(quiz.to_dict()), 200


@quiz_bp.route('/<int:quiz_id>', methods=['PUT'])
@require_user
def update_quiz(quiz_id):
    data = parse(QuizUpdate, _json_body())
    quiz = QuizService(_repository()).update_quiz(get_current_user_id(), quiz_id, data)
    return jsonify(quiz.to_dict(include_questions=True, reveal_answers=True)), 200


@quiz_bp.route('/<int:quiz_id>', methods=['DELETE'])
@require_user
def delete_quiz(quiz_id):
    QuizService(_repository()).delete_quiz(get_current_user_id(), quiz_id)
    return jsonify({"message": "Quiz deleted successfully"}), 200


# ======================= QUESTIONS & OPTIONS ===========================

@quiz_bp.route('/questions', methods=['POST'])
@require_user
def create_question():
    data = parse(QuestionCreateRequest, _json_body())
    question = QuizService(_repository()).create_question(get_current_user_id(), data)
    return jsonify(question.to_dict(reveal_answers=True)), 201


@quiz_bp.route('/questions/<int:question_id>', methods=['PUT'])
@require_user
def update_question(question_id):
    data = parse(QuestionUpdate, _json_body())
    question = QuizService(_repository()).update_question(get_current_user_id(), question_id, data)
    return jsonify(question.to_dict(reveal_answers=True)), 200


@quiz_bp.route('/questions/<int:question_id>', methods=['DELETE'])
@require_user
def delete_question(question_id):
    QuizService(_repository()).delete_question(get_current_user_id(), question_id)
    return jsonify({"message": "Question deleted successfully"}), 200


@quiz_bp.route('/options', methods=['POST'])
@require_user
def create_option():
    data = parse(OptionCreateRequest, _json_body())
    option = QuizService(_repository()).create_option(get_current_user_id(), data)
    return jsonify(option.to_dict(reveal_answers=True)), 201


@quiz_bp.route('/options/<int:option_id>', methods=['PUT'])
@require_user
def update_option(option_id):
    data = parse(OptionUpdate, _json_body())
    option = QuizService(_repository()).update_option(get_current_user_id(), option_id, data)
    return jsonify(option.to_dict(reveal_answers=True)), 200


@quiz_bp.route('/options/<int:option_id>', methods=['DELETE'])
@require_user
def delete_option(option_id):
    QuizService(_repository()).delete_option(get_current_user_id(), option_id)
    return jsonify({"message": "Option deleted successfully"}), 200


# ======================= ATTEMPTS ===========================

@quiz_bp.route('/attempts/start', methods=['POST'])
@require_user
def start_attempt():
    data = parse(StartAttemptRequest, _json_body())
    attempt, created = AttemptService(_repository()).start_attempt(
        get_current_user_id(), data.quiz_id
    )
    return jsonify(attempt.to_dict()), 201 if created else 200


@quiz_bp.route('/attempts/submit', methods=['POST'])
@require_user
def submit_attempt():
    data = parse(SubmitAttemptRequest, _json_body())
    attempt = AttemptService(_repository()).submit_attempt(
        get_current_user_id(), data.attempt_id, data.answers
    )
    return jsonify(attempt.to_dict(include_answers=True)), 200


@quiz_bp.route('/attempts/<int:attempt_id>', methods=['GET'])
@require_user
def get_attempt(attempt_id):
    attempt = AttemptService(_repository()).get_attempt(get_current_user_id(), attempt_id)
    return jsonify(attempt.to_dict(include_answers=True)), 200


@quiz_bp.route('/<int:quiz_id>/attempts', methods=['GET'])
@require_user
def list_attempts(quiz_id):
    attempts = AttemptService(_repository()).list_attempts(get_current_user_id(), quiz_id)
    return jsonify([a.to_dict() for a in attempts]), 200


@quiz_bp.route('/<int:quiz_id>/results', methods=['GET'])
@require_user
def quiz_results(quiz_id):
    payload = ResultsService(_repository()).quiz_results(get_current_user_id(), quiz_id)
    return jsonify(payload), 200


# ======================= GRADING ===========================

@quiz_bp.route('/answers/<int:answer_id>/grade', methods=['POST'])
@require_user
def grade_essay(answer_id):
    data = parse(GradeEssayRequest, _json_body())
    attempt = AttemptService(_repository()).grade_essay_answer(
        get_current_user_id(), answer_id, data.points
    )
    return jsonify(attempt.to_dict(include_answers=True)), 200
