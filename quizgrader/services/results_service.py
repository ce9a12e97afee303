"""
Results Service
Per-quiz result tables and per-student averages
"""
from sqlalchemy import and_, case, func

from quizgrader.errors import NotFoundError
from quizgrader.models import Answer, Question, QuestionType, Quiz, QuizAttempt
from quizgrader.services.access import AccessPolicy
from quizgrader.utils import isoformat


class ResultsService:
    """Aggregated quiz results"""

    def __init__(self, repository, access=None):
        self.repository = repository
        self.session = repository.session
        self.access = access or AccessPolicy(repository)

    def quiz_results(self, user_id, quiz_id):
        """Teacher view of every submitted attempt on a quiz"""
        quiz = self.repository.get_quiz(quiz_id)
        if quiz is None:
            raise NotFoundError("Quiz not found")

        self.access.require_teacher(
            user_id, quiz.classroom_id, "Only teachers can view quiz results"
        )
        return {
            "quiz_id": quiz.id,
            "title": quiz.title,
            "total_points": quiz.total_points(),
            "results": self.build_results_payload(quiz.id),
        }

    def build_results_payload(self, quiz_id):
        """
        Build the result rows for a quiz

        Returns:
            list: dicts with attempt, student, score, points, correct,
            incorrect and pending essay counts, best score first
        """
        pending_essay = and_(
            Question.question_type == QuestionType.ESSAY.value,
            Answer.graded_at.is_(None),
        )
        rows = self.session.query(
            QuizAttempt.id.label("attempt_id"),
            QuizAttempt.user_id,
            QuizAttempt.score,
            QuizAttempt.submitted_at,
            func.coalesce(func.sum(Answer.points), 0.0).label("earned_points"),
            func.sum(case((Answer.is_correct.is_(True), 1), else_=0)).label("correct_count"),
            func.sum(case((Answer.is_correct.is_(False), 1), else_=0)).label("incorrect_count"),
            func.sum(case((pending_essay, 1), else_=0)).label("pending_essays"),
        ).outerjoin(
            Answer, Answer.attempt_id == QuizAttempt.id
        ).outerjoin(
            Question, Question.id == Answer.question_id
        ).filter(
            QuizAttempt.quiz_id == quiz_id,
            QuizAttempt.submitted_at.isnot(None),
        ).group_by(
            QuizAttempt.id, QuizAttempt.user_id, QuizAttempt.score, QuizAttempt.submitted_at
        ).order_by(
            QuizAttempt.score.desc(), QuizAttempt.submitted_at.asc()
        ).all()

        return [
            {
                "attempt_id": row.attempt_id,
                "user_id": row.user_id,
                "score": row.score,
                "submitted_at": isoformat(row.submitted_at),
                "earned_points": float(row.earned_points or 0),
                "correct": int(row.correct_count or 0),
                "incorrect": int(row.incorrect_count or 0),
                "pending_essays": int(row.pending_essays or 0),
            }
            for row in rows
        ]

    def student_average_score(self, user_id, classroom_id):
        """Mean score over the student's scored attempts in a classroom, 0 when none"""
        average = self.session.query(func.avg(QuizAttempt.score)).join(
            Quiz, Quiz.id == QuizAttempt.quiz_id
        ).filter(
            QuizAttempt.user_id == user_id,
            Quiz.classroom_id == classroom_id,
            QuizAttempt.score.isnot(None),
        ).scalar()
        return float(average or 0)

    def average_for(self, caller_id, student_id, classroom_id):
        """A student may read their own average; teachers may read anyone's"""
        if caller_id != student_id:
            self.access.require_teacher(
                caller_id, classroom_id, "Only teachers can view other students' scores"
            )
        else:
            self.access.require_member(caller_id, classroom_id)
        return self.student_average_score(student_id, classroom_id)
