import pytest

from quizgrader import create_app
from quizgrader.extensions import db
from quizgrader.models import (
    Classroom, Enrollment, Option, Question, QuestionType, Quiz, STUDENT, TEACHER
)
from quizgrader.repositories import QuizRepository
from quizgrader.services import AttemptService

from tests.fakes import (
    InMemoryRepository, OTHER_STUDENT_ID, OWNER_ID, STUDENT_ID, TEACHER_ID,
    build_classroom, fixed_clock,
)


# ---------------- in-memory service fixtures ----------------

@pytest.fixture
def repo():
    return InMemoryRepository()


@pytest.fixture
def classroom(repo):
    return build_classroom(repo)


@pytest.fixture
def attempts(repo):
    return AttemptService(repo, clock=fixed_clock)


# ---------------- Flask / SQLite fixtures ----------------

@pytest.fixture
def app():
    app = create_app('testing')
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(client):
    """Put a user id in the session the way the auth layer would."""
    def _login(user_id):
        with client.session_transaction() as sess:
            sess['user_id'] = user_id
        return client
    return _login


@pytest.fixture
def sql_repo(app):
    return QuizRepository(db.session)


@pytest.fixture
def seeded(app):
    """
    Classroom with owner, teacher and two students, plus a published quiz:
    MULTIPLE_CHOICE (10), MULTIPLE_ANSWER (10, 4 options), SHORT_ANSWER (5),
    ESSAY (20).
    """
    classroom = Classroom(name="Physics 101", owner_id=OWNER_ID)
    db.session.add(classroom)
    db.session.flush()
    db.session.add_all([
        Enrollment(classroom_id=classroom.id, user_id=TEACHER_ID, role=TEACHER),
        Enrollment(classroom_id=classroom.id, user_id=STUDENT_ID, role=STUDENT),
        Enrollment(classroom_id=classroom.id, user_id=OTHER_STUDENT_ID, role=STUDENT),
    ])

    quiz = Quiz(classroom_id=classroom.id, title="Kinematics", is_published=True)
    mc = Question(question_text="Unit of force?", question_type=QuestionType.MULTIPLE_CHOICE.value,
                  points=10, order_index=0)
    mc.options = [
        Option(option_text="Joule", is_correct=False, order_index=0),
        Option(option_text="Newton", is_correct=True, order_index=1),
    ]
    ma = Question(question_text="Vector quantities?", question_type=QuestionType.MULTIPLE_ANSWER.value,
                  points=10, order_index=1)
    ma.options = [
        Option(option_text="Velocity", is_correct=True, order_index=0),
        Option(option_text="Force", is_correct=True, order_index=1),
        Option(option_text="Mass", is_correct=False, order_index=2),
        Option(option_text="Time", is_correct=False, order_index=3),
    ]
    sa = Question(question_text="Capital of France?", question_type=QuestionType.SHORT_ANSWER.value,
                  points=5, order_index=2)
    sa.options = [Option(option_text="Paris", is_correct=True, order_index=0)]
    essay = Question(question_text="Explain inertia.", question_type=QuestionType.ESSAY.value,
                     points=20, order_index=3)
    quiz.questions = [mc, ma, sa, essay]
    db.session.add(quiz)
    db.session.commit()

    def opt(question, text):
        return next(o.id for o in question.options if o.option_text == text)

    return {
        "classroom": classroom,
        "quiz": quiz,
        "mc": mc,
        "ma": ma,
        "sa": sa,
        "essay": essay,
        "opt": opt,
    }
