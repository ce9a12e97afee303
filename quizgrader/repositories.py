"""
Quiz Repository
SQLAlchemy-backed data access used by the services
"""
from sqlalchemy import func, update
from sqlalchemy.orm import selectinload

from quizgrader.models import (
    Answer, Classroom, Enrollment, Option, Question, Quiz, QuizAttempt
)


class QuizRepository:
    """
    Data access for quizzes, attempts and answers

    All writes go through the wrapped session; callers decide when to
    commit or roll back so a submission is persisted as a single unit.
    """

    def __init__(self, session):
        self.session = session

    # ---------------- classrooms ----------------
    def get_classroom(self, classroom_id):
        return self.session.get(Classroom, classroom_id)

    def get_enrollment_role(self, classroom_id, user_id):
        enrollment = self.session.query(Enrollment).filter_by(
            classroom_id=classroom_id, user_id=user_id
        ).first()
        return enrollment.role if enrollment else None

    # ---------------- quizzes ----------------
    def get_quiz(self, quiz_id):
        return self.session.query(Quiz).options(
            selectinload(Quiz.questions).selectinload(Question.options)
        ).filter_by(id=quiz_id).first()

    def list_quizzes(self, classroom_id, published_only=False):
        query = self.session.query(Quiz).filter_by(classroom_id=classroom_id)
        if published_only:
            query = query.filter_by(is_published=True)
        return query.order_by(Quiz.created_at.desc(), Quiz.id.desc()).all()

    def sum_question_points(self, quiz_id):
        total = self.session.query(
            func.coalesce(func.sum(Question.points), 0.0)
        ).filter(Question.quiz_id == quiz_id).scalar()
        return float(total or 0)

    # ---------------- questions and options ----------------
    def get_question(self, question_id):
        return self.session.query(Question).options(
            selectinload(Question.quiz), selectinload(Question.options)
        ).filter_by(id=question_id).first()

    def get_option(self, option_id):
        return self.session.query(Option).options(
            selectinload(Option.question).selectinload(Question.quiz)
        ).filter_by(id=option_id).first()

    def question_has_answers(self, question_id):
        return self.session.query(
            self.session.query(Answer).filter_by(question_id=question_id).exists()
        ).scalar()

    # ---------------- attempts ----------------
    def get_attempt(self, attempt_id):
        """Attempt with its quiz, the quiz's questions and their options"""
        return self.session.query(QuizAttempt).options(
            selectinload(QuizAttempt.quiz)
            .selectinload(Quiz.questions)
            .selectinload(Question.options),
            selectinload(QuizAttempt.answers).selectinload(Answer.question),
        ).filter_by(id=attempt_id).first()

    def find_attempt(self, quiz_id, user_id):
        return self.session.query(QuizAttempt).filter_by(quiz_id=quiz_id, user_id=user_id).first()

    def list_attempts(self, quiz_id):
        return self.session.query(QuizAttempt).filter_by(quiz_id=quiz_id).order_by(
            QuizAttempt.submitted_at.desc(), QuizAttempt.id.desc()
        ).all()

    def lock_attempt(self, attempt_id):
        """Re-read the attempt under a row lock (no-op on SQLite)"""
        return self.session.query(QuizAttempt).filter_by(id=attempt_id).populate_existing().with_for_update().first()

    def claim_submission(self, attempt_id, submitted_at):
        """
        Atomically mark an attempt submitted

        Returns:
            bool: False when another request already submitted it
        """
        result = self.session.execute(
            update(QuizAttempt)
            .where(QuizAttempt.id == attempt_id, QuizAttempt.submitted_at.is_(None))
            .values(submitted_at=submitted_at)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    # ---------------- answers ----------------
    def get_answer(self, answer_id):
        """Answer with its question and the attempt's quiz (for authorization)"""
        return self.session.query(Answer).options(
            selectinload(Answer.question),
            selectinload(Answer.attempt).selectinload(QuizAttempt.quiz),
        ).filter_by(id=answer_id).first()

    def sum_answer_points(self, attempt_id):
        """Aggregate straight from the table so concurrent grades are seen"""
        total = self.session.query(
            func.coalesce(func.sum(Answer.points), 0.0)
        ).filter(Answer.attempt_id == attempt_id).scalar()
        return float(total or 0)

    # ---------------- unit of work ----------------
    def add(self, obj):
        self.session.add(obj)

    def add_all(self, objs):
        self.session.add_all(objs)

    def delete(self, obj):
        self.session.delete(obj)

    def flush(self):
        self.session.flush()

    def commit(self):
        self.session.commit()

    def rollback(self):
        self.session.rollback()
