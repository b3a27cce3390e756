from dataclasses import dataclass
from pathlib import Path
from dotenv import load_dotenv  # pip install python-dotenv
import os

# файл окружения: имя берём из переменной или используем .env
env_file = os.getenv("ENV_FILE", ".env")
load_dotenv(Path(__file__).parent.parent / env_file)

DATA_DIR = Path(__file__).parent / "data"

bot_token = os.getenv("BOT_TOKEN")
imdb_api_key = os.getenv("IMDB_API_KEY", "")
movies_api_url = os.getenv("MOVIES_API_URL", "https://tv-api.com/en/API/Top250Movies")
database_url = os.getenv("DATABASE_URL", f"sqlite:///{DATA_DIR / 'movie_quiz.db'}")
log_level = os.getenv("LOG_LEVEL", "INFO").upper()
http_timeout = float(os.getenv("HTTP_TIMEOUT", "10"))


@dataclass(frozen=True)
class QuizSettings:
    """Round length and pacing passed to every presenter."""

    total_questions: int = 10
    pacing_delay: float = 1.0

    def __post_init__(self) -> None:
        if self.total_questions <= 0:
            raise ValueError(f"total_questions must be positive, got {self.total_questions}")
        if self.pacing_delay < 0:
            raise ValueError(f"pacing_delay must not be negative, got {self.pacing_delay}")

    @classmethod
    def from_env(cls) -> "QuizSettings":
        """Build settings from QUIZ_* environment variables."""
        return cls(
            total_questions=int(os.getenv("QUIZ_TOTAL_QUESTIONS", "10")),
            pacing_delay=float(os.getenv("QUIZ_PACING_DELAY", "1.0")),
        )
