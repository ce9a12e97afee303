"""
Question and Option Models
Question types and the options students choose from
"""
import enum

from quizgrader.extensions import db


class QuestionType(str, enum.Enum):
    """Supported question types"""
    MULTIPLE_CHOICE = 'MULTIPLE_CHOICE'
    MULTIPLE_ANSWER = 'MULTIPLE_ANSWER'
    TRUE_FALSE = 'TRUE_FALSE'
    SHORT_ANSWER = 'SHORT_ANSWER'
    ESSAY = 'ESSAY'


class Question(db.Model):
    """Question model"""
    __tablename__ = 'question'

    id = db.Column(db.Integer, primary_key=True)
    quiz_id = db.Column(db.Integer, db.ForeignKey('quiz.id'), nullable=False, index=True)
    question_text = db.Column(db.Text, nullable=False)
    question_type = db.Column(db.String(30), nullable=False, default=QuestionType.MULTIPLE_CHOICE.value)
    points = db.Column(db.Float, nullable=False, default=1.0)
    order_index = db.Column(db.Integer, default=0)

    quiz = db.relationship('Quiz', back_populates='questions')
    options = db.relationship(
        'Option',
        back_populates='question',
        lazy=True,
        order_by='Option.order_index',
        cascade='all, delete-orphan',
    )

    __table_args__ = (
        db.CheckConstraint('points > 0', name='question_points_positive'),
    )

    def __repr__(self):
        return f'<Question {self.id}: {self.question_text[:50]}...>'

    @property
    def type(self):
        return QuestionType(self.question_type)

    def correct_options(self):
        """Options flagged correct, in display order"""
        return [o for o in self.options if o.is_correct]

    def first_correct_option(self):
        correct = self.correct_options()
        return correct[0] if correct else None

    def to_dict(self, reveal_answers=False):
        return {
            "id": self.id,
            "quiz_id": self.quiz_id,
            "question_text": self.question_text,
            "question_type": self.question_type,
            "points": self.points,
            "order_index": self.order_index,
            "options": [o.to_dict(reveal_answers=reveal_answers) for o in self.options],
        }


class Option(db.Model):
    """Option model"""
    __tablename__ = 'question_option'

    id = db.Column(db.Integer, primary_key=True)
    question_id = db.Column(db.Integer, db.ForeignKey('question.id'), nullable=False, index=True)
    option_text = db.Column(db.Text, nullable=False)
    is_correct = db.Column(db.Boolean, default=False, nullable=False)
    order_index = db.Column(db.Integer, default=0)

    question = db.relationship('Question', back_populates='options')

    def __repr__(self):
        return f'<Option {self.id} of Q{self.question_id}>'

    def to_dict(self, reveal_answers=False):
        data = {
            "id": self.id,
            "option_text": self.option_text,
            "order_index": self.order_index,
        }
        if reveal_answers:
            data["is_correct"] = bool(self.is_correct)
        return data
