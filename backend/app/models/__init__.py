from app.models.user import User
from app.models.oauth_account import OAuthAccount
from app.models.user_session import UserSession
from app.models.workout import Workout

__all__ = [
    "User",
    "OAuthAccount",
    "UserSession",
    "Workout",
]
