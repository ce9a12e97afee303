"""
Scoring Service
Grades one answer per question type and turns point totals into a percentage
"""
from quizgrader.models.question import QuestionType


class ScoringService:
    """Stateless grading rules for quiz answers"""

    @staticmethod
    def grade_answer(question, selected_options=None, text_answer=None):
        """
        Grade a single submitted answer

        Returns:
            tuple: (is_correct, points) with 0 <= points <= question.points
        """
        selected_options = list(selected_options or [])
        question_type = question.type

        if question_type in (QuestionType.MULTIPLE_CHOICE, QuestionType.TRUE_FALSE):
            return ScoringService.grade_single_choice(question, selected_options)

        if question_type == QuestionType.MULTIPLE_ANSWER:
            return ScoringService.grade_multiple_answer(question, selected_options)

        if question_type == QuestionType.SHORT_ANSWER:
            return ScoringService.grade_short_answer(question, text_answer)

        # Essays stay at zero until a teacher grades them
        return False, 0.0

    @staticmethod
    def grade_single_choice(question, selected_options):
        """Exactly one selection, compared with the first option flagged correct"""
        if len(selected_options) != 1:
            return False, 0.0

        correct_option = question.first_correct_option()
        is_correct = correct_option is not None and correct_option.id == selected_options[0]
        return is_correct, float(question.points) if is_correct else 0.0

    @staticmethod
    def grade_multiple_answer(question, selected_options):
        """
        Partial credit for multi-select questions

        - nothing wrong, nothing missed: full points
        - only missed correct options: points * found / |correct|
        - only extra wrong options: points * (|options| - wrong) / |options|
        - both kinds of error: 0
        """
        correct_ids = {o.id for o in question.options if o.is_correct}
        selected_ids = set(selected_options)

        incorrect_selections = selected_ids - correct_ids
        missed_correct = correct_ids - selected_ids

        if not incorrect_selections and not missed_correct:
            return True, float(question.points)

        if not incorrect_selections:
            found = len(correct_ids) - len(missed_correct)
            return False, question.points * found / len(correct_ids)

        if not missed_correct:
            total_options = len(question.options)
            if total_options == 0:
                return False, 0.0
            # Unknown option ids count as wrong picks; never go below zero
            kept = max(total_options - len(incorrect_selections), 0)
            return False, question.points * kept / total_options

        return False, 0.0

    @staticmethod
    def grade_short_answer(question, text_answer):
        """Case-insensitive exact match, no trimming"""
        if not text_answer:
            return False, 0.0

        correct_option = question.first_correct_option()
        if correct_option is None:
            return False, 0.0

        is_correct = correct_option.option_text.lower() == text_answer.lower()
        return is_correct, float(question.points) if is_correct else 0.0

    @staticmethod
    def percentage(earned_points, total_points):
        """Score in [0, 100]; 0 when there is nothing to score against"""
        if not total_points or total_points <= 0:
            return 0.0
        return (earned_points / total_points) * 100

    @staticmethod
    def score_from_answers(answers):
        """
        Recompute the submission-time score from persisted answers
        (denominator: points of the questions that were answered)
        """
        earned = sum(a.points or 0 for a in answers)
        total = sum(a.question.points for a in answers)
        return ScoringService.percentage(earned, total)
