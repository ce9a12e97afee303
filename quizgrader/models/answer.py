"""
Answer Model
Stores the graded response to one question within one attempt
"""
from quizgrader.extensions import db
from quizgrader.utils import isoformat


class Answer(db.Model):
    """Answer model"""
    __tablename__ = 'answer'

    id = db.Column(db.Integer, primary_key=True)
    attempt_id = db.Column(db.Integer, db.ForeignKey('quiz_attempt.id'), nullable=False, index=True)
    question_id = db.Column(db.Integer, db.ForeignKey('question.id'), nullable=False, index=True)
    selected_options = db.Column(db.JSON, nullable=False, default=list)
    text_answer = db.Column(db.Text, nullable=True)
    is_correct = db.Column(db.Boolean, nullable=False, default=False)
    points = db.Column(db.Float, nullable=False, default=0.0)
    # Set only when a teacher grades the answer by hand
    graded_at = db.Column(db.DateTime(timezone=True), nullable=True)

    attempt = db.relationship('QuizAttempt', back_populates='answers')
    question = db.relationship('Question')

    __table_args__ = (
        db.UniqueConstraint(
            'attempt_id', 'question_id',
            name='unique_answer_per_question'
        ),
    )

    def __repr__(self):
        return f'<Answer Q{self.question_id} in attempt {self.attempt_id}>'

    def to_dict(self):
        return {
            "id": self.id,
            "attempt_id": self.attempt_id,
            "question_id": self.question_id,
            "selected_options": list(self.selected_options or []),
            "text_answer": self.text_answer,
            "is_correct": bool(self.is_correct),
            "points": self.points,
            "graded_at": isoformat(self.graded_at),
        }
