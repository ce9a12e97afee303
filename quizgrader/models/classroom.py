"""
Classroom and Enrollment Models
Who owns a classroom and who teaches or studies in it
"""
from quizgrader.extensions import db
from quizgrader.utils import now_utc, isoformat

TEACHER = 'TEACHER'
STUDENT = 'STUDENT'


class Classroom(db.Model):
    """Classroom model"""
    __tablename__ = 'classroom'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    owner_id = db.Column(db.Integer, nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), default=now_utc)

    enrollments = db.relationship(
        'Enrollment', back_populates='classroom', lazy=True, cascade='all, delete-orphan'
    )
    quizzes = db.relationship(
        'Quiz', back_populates='classroom', lazy=True, cascade='all, delete-orphan'
    )

    def __repr__(self):
        return f'<Classroom {self.name}>'

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "owner_id": self.owner_id,
            "created_at": isoformat(self.created_at),
        }


class Enrollment(db.Model):
    """Enrollment model (role is TEACHER or STUDENT)"""
    __tablename__ = 'enrollment'

    id = db.Column(db.Integer, primary_key=True)
    classroom_id = db.Column(db.Integer, db.ForeignKey('classroom.id'), nullable=False, index=True)
    user_id = db.Column(db.Integer, nullable=False, index=True)
    role = db.Column(db.String(20), nullable=False, default=STUDENT)
    enrolled_at = db.Column(db.DateTime(timezone=True), default=now_utc)

    classroom = db.relationship('Classroom', back_populates='enrollments')

    __table_args__ = (
        db.UniqueConstraint(
            'classroom_id', 'user_id',
            name='unique_enrollment_per_classroom'
        ),
    )

    def __repr__(self):
        return f'<Enrollment user {self.user_id} in classroom {self.classroom_id} ({self.role})>'
