"""
Services Package
"""
from quizgrader.services.scoring_service import ScoringService
from quizgrader.services.access import AccessPolicy
from quizgrader.services.attempt_service import AttemptService
from quizgrader.services.quiz_service import QuizService
from quizgrader.services.results_service import ResultsService

__all__ = ['ScoringService', 'AccessPolicy', 'AttemptService', 'QuizService', 'ResultsService']
