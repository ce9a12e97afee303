"""
Routes Package
Exports all route blueprints
"""
from quizgrader.routes.quizzes import quiz_bp

__all__ = ['quiz_bp']
