"""
Models Package
Exports all database models
"""
from quizgrader.models.classroom import Classroom, Enrollment, TEACHER, STUDENT
from quizgrader.models.quiz import Quiz
from quizgrader.models.question import Question, Option, QuestionType
from quizgrader.models.attempt import QuizAttempt, AttemptState
from quizgrader.models.answer import Answer

__all__ = [
    'Classroom', 'Enrollment', 'TEACHER', 'STUDENT',
    'Quiz', 'Question', 'Option', 'QuestionType',
    'QuizAttempt', 'AttemptState', 'Answer',
]
