"""
Attempt Service
Starting, submitting and grading quiz attempts
"""
import logging

from quizgrader.errors import (
    AuthorizationError, ConflictError, NotFoundError, ValidationError
)
from quizgrader.models import Answer, QuestionType, QuizAttempt
from quizgrader.services.access import AccessPolicy
from quizgrader.services.scoring_service import ScoringService
from quizgrader.utils import now_utc

logger = logging.getLogger(__name__)


class AttemptService:
    """Attempt lifecycle on top of an injected repository"""

    def __init__(self, repository, access=None, clock=now_utc):
        self.repository = repository
        self.access = access or AccessPolicy(repository)
        self.clock = clock

    def start_attempt(self, user_id, quiz_id):
        """
        Open (or resume) the caller's attempt on a published quiz

        An unsubmitted attempt is returned as-is; a submitted one cannot
        be restarted.

        Returns:
            tuple: (attempt, created). `created` is False when an open
            attempt was resumed.
        """
        quiz = self.repository.get_quiz(quiz_id)
        if quiz is None or not quiz.is_published:
            raise NotFoundError("Quiz not found or not published")

        if not (self.access.is_student(user_id, quiz.classroom_id)
                or self.access.is_owner(user_id, quiz.classroom_id)):
            raise AuthorizationError("You are not enrolled in this classroom")

        if quiz.is_past_due(self.clock()):
            raise ConflictError("This quiz is past its due date")

        existing = self.repository.find_attempt(quiz_id, user_id)
        if existing is not None:
            if not existing.is_submitted:
                return existing, False
            raise ConflictError("You have already completed this quiz")

        attempt = QuizAttempt(quiz_id=quiz_id, user_id=user_id, started_at=self.clock())
        self.repository.add(attempt)
        self.repository.commit()
        logger.info("Attempt %s started on quiz %s by user %s", attempt.id, quiz_id, user_id)
        return attempt, True

    def submit_attempt(self, user_id, attempt_id, answers):
        """
        Grade and persist a submission

        Args:
            user_id: caller, must own the attempt
            attempt_id: attempt being submitted
            answers: list of SubmittedAnswer (question_id, selected_options, text_answer)

        Returns:
            QuizAttempt: the submitted attempt with its answers and score
        """
        attempt = self.repository.get_attempt(attempt_id)
        if attempt is None:
            raise NotFoundError("Attempt not found")

        if attempt.user_id != user_id:
            raise AuthorizationError("This attempt does not belong to you")

        if attempt.is_submitted:
            raise ConflictError("This attempt has already been submitted")

        submitted_at = self.clock()
        try:
            # Point-in-time guard in the store: only one submission wins
            if not self.repository.claim_submission(attempt.id, submitted_at):
                raise ConflictError("This attempt has already been submitted")

            questions = {q.id: q for q in attempt.quiz.questions}
            total_points = 0.0
            earned_points = 0.0
            records = []

            for submitted in answers:
                question = questions.get(submitted.question_id)
                if question is None:
                    continue

                total_points += question.points
                is_correct, points = ScoringService.grade_answer(
                    question, submitted.selected_options, submitted.text_answer
                )
                earned_points += points

                records.append(Answer(
                    attempt=attempt,
                    question=question,
                    selected_options=list(submitted.selected_options or []),
                    text_answer=submitted.text_answer,
                    is_correct=is_correct,
                    points=points,
                ))

            attempt.submitted_at = submitted_at
            attempt.score = ScoringService.percentage(earned_points, total_points)
            self.repository.add_all(records)
            self.repository.commit()
        except Exception:
            self.repository.rollback()
            logger.warning("Submission of attempt %s rolled back", attempt_id)
            raise

        logger.info(
            "Attempt %s submitted: %d answers, %.2f/%.2f points, score %.2f",
            attempt.id, len(records), earned_points, total_points, attempt.score
        )
        return attempt

    def grade_essay_answer(self, user_id, answer_id, points):
        """
        Manually grade an essay answer and recompute the attempt score

        The recomputed score divides by the points of every question in the
        quiz, not only the answered ones.
        """
        answer = self.repository.get_answer(answer_id)
        if answer is None:
            raise NotFoundError("Answer not found")

        quiz = answer.attempt.quiz
        self.access.require_teacher(
            user_id, quiz.classroom_id, "Only teachers can grade essay questions"
        )

        question = answer.question
        if question.type != QuestionType.ESSAY:
            raise ValidationError("This is not an essay question")

        if points < 0 or points > question.points:
            raise ValidationError(f"Points must be between 0 and {question.points:g}")

        try:
            attempt = self.repository.lock_attempt(answer.attempt_id)
            if attempt is None:
                raise NotFoundError("Attempt not found")
            if not attempt.is_submitted:
                raise ConflictError("This attempt has not been submitted")

            answer.points = float(points)
            answer.is_correct = points > 0
            answer.graded_at = self.clock()
            self.repository.flush()

            earned_points = self.repository.sum_answer_points(attempt.id)
            total_points = self.repository.sum_question_points(attempt.quiz_id)
            attempt.score = ScoringService.percentage(earned_points, total_points)
            self.repository.commit()
        except Exception:
            self.repository.rollback()
            logger.warning("Grading of answer %s rolled back", answer_id)
            raise

        logger.info(
            "Answer %s graded %.2f by user %s; attempt %s rescored to %.2f",
            answer_id, points, user_id, attempt.id, attempt.score
        )
        return attempt

    def get_attempt(self, user_id, attempt_id):
        """Attempt owner or a classroom teacher"""
        attempt = self.repository.get_attempt(attempt_id)
        if attempt is None:
            raise NotFoundError("Attempt not found")

        if attempt.user_id != user_id:
            self.access.require_teacher(
                user_id, attempt.quiz.classroom_id,
                "You do not have permission to view this attempt"
            )
        return attempt

    def list_attempts(self, user_id, quiz_id):
        """Every attempt on a quiz, teachers only"""
        quiz = self.repository.get_quiz(quiz_id)
        if quiz is None:
            raise NotFoundError("Quiz not found")

        self.access.require_teacher(
            user_id, quiz.classroom_id, "Only teachers can view all attempts for this quiz"
        )
        return self.repository.list_attempts(quiz_id)
