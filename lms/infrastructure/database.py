from flask import current_app, g
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database
from werkzeug.local import LocalProxy

from lms_utils.logger_utils import logger


def get_db() -> Database:
    """
    Returns the MongoDB database for the current app.
    One MongoClient per Flask app, shared across requests via app.extensions.
    """
    if 'db' not in g:
        if 'mongo_client' not in current_app.extensions:
            current_app.extensions['mongo_client'] = MongoClient(
                current_app.config['MONGO_URI'],
                serverSelectionTimeoutMS=5000,
            )
        # The database name is part of the MONGO_URI, e.g. mongodb://host:port/learnhub
        g.db = current_app.extensions['mongo_client'].get_database()

    return g.db


def ensure_indexes(database: Database) -> None:
    """Indexes behind the quiz, result and progress lookups."""
    database.quizzes.create_index([("course_id", ASCENDING)])
    database.results.create_index([("student_id", ASCENDING), ("timestamp", DESCENDING)])
    database.resources.create_index([("subject", ASCENDING), ("difficulty", ASCENDING)])
    database.lessons.create_index([("course_id", ASCENDING), ("order", ASCENDING)])
    logger.info("MongoDB indexes ensured")


def init_app(app):
    """Initialize the database with the Flask app."""
    @app.teardown_appcontext
    def close_db(exception):
        g.pop('db', None)
        # the client itself stays open; it is shared via app.extensions


# Use a LocalProxy to access the db connection within the application context
db = LocalProxy(get_db)
