"""
Quiz Service
Creating, editing, publishing and reading quizzes
"""
import logging

from quizgrader.errors import ConflictError, NotFoundError, ValidationError
from quizgrader.models import Option, Question, QuestionType, Quiz
from quizgrader.services.access import AccessPolicy
from quizgrader.utils import now_utc

logger = logging.getLogger(__name__)


class QuizService:
    """Quiz authoring for classroom teachers"""

    def __init__(self, repository, access=None, clock=now_utc):
        self.repository = repository
        self.access = access or AccessPolicy(repository)
        self.clock = clock

    def create_quiz(self, user_id, data):
        """
        Create a quiz with its questions and options

        Args:
            user_id: caller, must teach the classroom
            data: validated QuizCreate payload
        """
        self.access.require_teacher(
            user_id, data.classroom_id, "Only teachers can create quizzes for this classroom"
        )

        quiz = Quiz(
            classroom_id=data.classroom_id,
            title=data.title,
            description=data.description or "",
            instructions=data.instructions or "",
            time_limit=data.time_limit,
            due_date=data.due_date,
            is_published=data.is_published,
            created_at=self.clock(),
        )
        for q in data.questions:
            question = Question(
                question_text=q.text,
                question_type=q.type.value,
                points=q.points,
                order_index=q.order_index,
            )
            question.options = [
                Option(option_text=o.text, is_correct=o.is_correct, order_index=o.order_index)
                for o in q.options
            ]
            quiz.questions.append(question)

        self.repository.add(quiz)
        self.repository.commit()
        logger.info(
            "Quiz %s created in classroom %s with %d questions",
            quiz.id, quiz.classroom_id, len(data.questions)
        )
        return quiz

    def publish_quiz(self, user_id, quiz_id):
        quiz = self.repository.get_quiz(quiz_id)
        if quiz is None:
            raise NotFoundError("Quiz not found")

        self.access.require_teacher(user_id, quiz.classroom_id, "Only teachers can publish quizzes")

        quiz.is_published = True
        self.repository.commit()
        logger.info("Quiz %s published", quiz_id)
        return quiz

    def get_quiz(self, user_id, quiz_id):
        """
        Returns:
            tuple: (quiz, is_teacher). Students only see published quizzes.
        """
        quiz = self.repository.get_quiz(quiz_id)
        if quiz is None:
            raise NotFoundError("Quiz not found")

        is_teacher = self.access.is_teacher(user_id, quiz.classroom_id)
        if not is_teacher:
            self.access.require_member(user_id, quiz.classroom_id)
            if not quiz.is_published:
                raise NotFoundError("Quiz not found")
        return quiz, is_teacher

    def list_classroom_quizzes(self, user_id, classroom_id):
        is_teacher = self.access.is_teacher(user_id, classroom_id)
        if not is_teacher:
            self.access.require_member(user_id, classroom_id)
        return self.repository.list_quizzes(classroom_id, published_only=not is_teacher)

    # ---------------- editing ----------------

    def _editable_quiz(self, user_id, quiz_id, message):
        quiz = self.repository.get_quiz(quiz_id)
        if quiz is None:
            raise NotFoundError("Quiz not found")
        self.access.require_teacher(user_id, quiz.classroom_id, message)
        return quiz

    def _editable_question(self, user_id, question_id, message):
        question = self.repository.get_question(question_id)
        if question is None:
            raise NotFoundError("Question not found")
        self.access.require_teacher(user_id, question.quiz.classroom_id, message)
        return question

    def _editable_option(self, user_id, option_id, message):
        option = self.repository.get_option(option_id)
        if option is None:
            raise NotFoundError("Option not found")
        self.access.require_teacher(user_id, option.question.quiz.classroom_id, message)
        return option

    def update_quiz(self, user_id, quiz_id, data):
        """
        Apply a partial QuizUpdate

        Scores of attempts already submitted are not recomputed.
        """
        quiz = self._editable_quiz(user_id, quiz_id, "Only teachers can update this quiz")

        for field, value in data.changes().items():
            setattr(quiz, field, value)

        self.repository.commit()
        logger.info("Quiz %s updated", quiz_id)
        return quiz

    def delete_quiz(self, user_id, quiz_id):
        """Delete a quiz with its questions, attempts and answers"""
        quiz = self._editable_quiz(user_id, quiz_id, "Only teachers can delete this quiz")

        self.repository.delete(quiz)
        self.repository.commit()
        logger.info("Quiz %s deleted by user %s", quiz_id, user_id)

    def create_question(self, user_id, data):
        """
        Add a question (and its options) to an existing quiz

        Args:
            data: validated QuestionCreateRequest payload
        """
        quiz = self._editable_quiz(
            user_id, data.quiz_id, "Only teachers can add questions to this quiz"
        )

        question = Question(
            quiz_id=quiz.id,
            question_text=data.text,
            question_type=data.type.value,
            points=data.points,
            order_index=data.order_index,
        )
        question.options = [
            Option(option_text=o.text, is_correct=o.is_correct, order_index=o.order_index)
            for o in data.options
        ]
        quiz.questions.append(question)

        self.repository.add(question)
        self.repository.commit()
        logger.info("Question %s added to quiz %s", question.id, quiz.id)
        return question

    def update_question(self, user_id, question_id, data):
        question = self._editable_question(
            user_id, question_id, "Only teachers can update this question"
        )
        changes = data.changes()

        if changes.get("type") == QuestionType.ESSAY and question.options:
            raise ValidationError("Essay questions cannot have options")

        if "text" in changes:
            question.question_text = changes["text"]
        if "type" in changes:
            question.question_type = changes["type"].value
        if "points" in changes:
            question.points = changes["points"]
        if "order_index" in changes:
            question.order_index = changes["order_index"]

        self.repository.commit()
        logger.info("Question %s updated", question_id)
        return question

    def delete_question(self, user_id, question_id):
        """
        Delete a question and its options

        Raises:
            ConflictError: students have already answered it
        """
        question = self._editable_question(
            user_id, question_id, "Only teachers can delete this question"
        )
        if self.repository.question_has_answers(question.id):
            raise ConflictError("This question has already been answered and cannot be deleted")

        self.repository.delete(question)
        self.repository.commit()
        logger.info("Question %s deleted", question_id)

    def create_option(self, user_id, data):
        question = self._editable_question(
            user_id, data.question_id, "Only teachers can add options to this question"
        )
        if question.type == QuestionType.ESSAY:
            raise ValidationError("Essay questions cannot have options")

        option = Option(
            question_id=question.id,
            option_text=data.text,
            is_correct=data.is_correct,
            order_index=data.order_index,
        )
        question.options.append(option)

        self.repository.add(option)
        self.repository.commit()
        logger.info("Option %s added to question %s", option.id, question.id)
        return option

    def update_option(self, user_id, option_id, data):
        option = self._editable_option(user_id, option_id, "Only teachers can update this option")
        changes = data.changes()

        if "text" in changes:
            option.option_text = changes["text"]
        if "is_correct" in changes:
            option.is_correct = changes["is_correct"]
        if "order_index" in changes:
            option.order_index = changes["order_index"]

        self.repository.commit()
        logger.info("Option %s updated", option_id)
        return option

    def delete_option(self, user_id, option_id):
        option = self._editable_option(user_id, option_id, "Only teachers can delete this option")

        self.repository.delete(option)
        self.repository.commit()
        logger.info("Option %s deleted", option_id)
