"""
Quiz Model
"""
from quizgrader.extensions import db
from quizgrader.utils import now_utc, as_utc, isoformat


class Quiz(db.Model):
    """Quiz model"""
    __tablename__ = 'quiz'

    id = db.Column(db.Integer, primary_key=True)
    classroom_id = db.Column(db.Integer, db.ForeignKey('classroom.id'), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, default='')
    instructions = db.Column(db.Text, default='')
    time_limit = db.Column(db.Integer, nullable=True)  # minutes, NULL = no limit
    due_date = db.Column(db.DateTime(timezone=True), nullable=True)
    is_published = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=now_utc)

    # Relationships
    classroom = db.relationship('Classroom', back_populates='quizzes')
    questions = db.relationship(
        'Question',
        back_populates='quiz',
        lazy=True,
        order_by='Question.order_index',
        cascade='all, delete-orphan',
    )
    attempts = db.relationship(
        'QuizAttempt', back_populates='quiz', lazy=True, cascade='all, delete-orphan'
    )

    def __repr__(self):
        return f'<Quiz {self.title}>'

    def total_points(self):
        """Sum of every question's maximum points"""
        return sum(q.points for q in self.questions)

    def is_past_due(self, now):
        """True once `now` is after the due date (never when no due date is set)"""
        if not self.due_date:
            return False
        return as_utc(now) > as_utc(self.due_date)

    def to_dict(self, include_questions=False, reveal_answers=False):
        data = {
            "id": self.id,
            "classroom_id": self.classroom_id,
            "title": self.title,
            "description": self.description or "",
            "instructions": self.instructions or "",
            "time_limit": self.time_limit,
            "due_date": isoformat(self.due_date),
            "is_published": bool(self.is_published),
            "created_at": isoformat(self.created_at),
        }
        if include_questions:
            data["total_points"] = self.total_points()
            data["questions"] = [
                q.to_dict(reveal_answers=reveal_answers) for q in self.questions
            ]
        return data
