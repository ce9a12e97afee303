"""
Application Factory
Creates and configures the Flask application
"""
import logging

from flask import Flask

from quizgrader.config import get_config
from quizgrader.errors import register_error_handlers
from quizgrader.extensions import db


def configure_logging(app):
    """Route application logs through a single stream handler"""
    level = app.config.get('LOG_LEVEL', 'INFO')
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
    )
    logging.getLogger('quizgrader').setLevel(level)


def create_app(config_name=None):
    """
    Application factory pattern
    Creates and configures Flask app
    """
    app = Flask(__name__)

    # Load configuration
    if config_name:
        from quizgrader.config import config
        app.config.from_object(config[config_name])
    else:
        app.config.from_object(get_config())

    configure_logging(app)

    # Initialize extensions
    db.init_app(app)

    register_error_handlers(app)

    # Register blueprints
    from quizgrader.routes import quiz_bp
    app.register_blueprint(quiz_bp, url_prefix='/api/quizzes')

    # Create database tables
    if app.config.get('CREATE_TABLES'):
        from quizgrader import models  # noqa: F401
        with app.app_context():
            db.create_all()
            app.logger.info('Database tables created/verified')

    return app
