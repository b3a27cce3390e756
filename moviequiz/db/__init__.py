from moviequiz.db.models import init_db, get_session
from moviequiz.db.repository import GameRepository

__all__ = ["init_db", "get_session", "GameRepository"]
