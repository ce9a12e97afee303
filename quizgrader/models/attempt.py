"""
QuizAttempt Model
One student's single run through a quiz
"""
import enum

from quizgrader.extensions import db
from quizgrader.models.question import QuestionType
from quizgrader.utils import now_utc, isoformat


class AttemptState(str, enum.Enum):
    """
    Lifecycle of an attempt, derived from stored fields:
    IN_PROGRESS -> ESSAY_PENDING -> SCORED, or IN_PROGRESS -> SCORED
    when the quiz has no essay answers.
    """
    IN_PROGRESS = 'IN_PROGRESS'
    ESSAY_PENDING = 'ESSAY_PENDING'
    SCORED = 'SCORED'


class QuizAttempt(db.Model):
    """Quiz attempt model"""
    __tablename__ = 'quiz_attempt'

    id = db.Column(db.Integer, primary_key=True)
    quiz_id = db.Column(db.Integer, db.ForeignKey('quiz.id'), nullable=False, index=True)
    user_id = db.Column(db.Integer, nullable=False, index=True)
    started_at = db.Column(db.DateTime(timezone=True), default=now_utc)
    submitted_at = db.Column(db.DateTime(timezone=True), nullable=True)
    score = db.Column(db.Float, nullable=True)

    quiz = db.relationship('Quiz', back_populates='attempts')
    answers = db.relationship(
        'Answer', back_populates='attempt', lazy=True, cascade='all, delete-orphan'
    )

    __table_args__ = (
        db.UniqueConstraint('quiz_id', 'user_id', name='unique_attempt_per_student'),
    )

    def __repr__(self):
        return f'<QuizAttempt {self.id} quiz {self.quiz_id} by {self.user_id}>'

    @property
    def is_submitted(self):
        return self.submitted_at is not None

    def pending_essays(self):
        """Essay answers no teacher has graded yet"""
        return [
            a for a in self.answers
            if a.question.type == QuestionType.ESSAY and a.graded_at is None
        ]

    @property
    def state(self):
        if not self.is_submitted:
            return AttemptState.IN_PROGRESS
        if self.pending_essays():
            return AttemptState.ESSAY_PENDING
        return AttemptState.SCORED

    def to_dict(self, include_answers=False):
        data = {
            "id": self.id,
            "quiz_id": self.quiz_id,
            "user_id": self.user_id,
            "started_at": isoformat(self.started_at),
            "submitted_at": isoformat(self.submitted_at),
            "score": self.score,
            "state": self.state.value,
        }
        if include_answers:
            data["answers"] = [a.to_dict() for a in self.answers]
        return data
