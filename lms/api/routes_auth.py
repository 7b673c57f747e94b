"""Identity plumbing: loads the signed-in user and exposes their role."""
from flask import jsonify
from flask_login import LoginManager, current_user
from pydantic import ValidationError

from lms.infrastructure.database import db
from lms.domain.models.db_models import User
from lms.services.authorization import Identity
from lms_utils.logger_utils import logger

# Initialize Login Manager
login_manager = LoginManager()


class FlaskUser:
    """Flask-Login compatible user wrapper."""

    def __init__(self, user: User):
        self.user = user
        self.id = user.id
        self.is_authenticated = True
        self.is_active = user.is_active
        self.is_anonymous = False

    def get_id(self):
        return self.id


def get_user_by_id(user_id: str):
    data = db.users.find_one({"_id": user_id})
    if not data:
        return None
    try:
        return User(**data)
    except ValidationError as e:
        logger.error(f"Stored user {user_id} is invalid: {e}")
        return None


@login_manager.user_loader
def load_user(user_id):
    """Load user by ID for Flask-Login."""
    user = get_user_by_id(user_id)
    if user:
        return FlaskUser(user)
    return None


@login_manager.unauthorized_handler
def unauthorized():
    """Handle unauthorized access."""
    return jsonify({"error": "Authentication required"}), 401


def current_identity() -> Identity:
    """Identity of the signed-in user, for the authorization checks."""
    return Identity(user_id=current_user.id, role=current_user.user.role)
