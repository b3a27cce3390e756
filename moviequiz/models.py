from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional


@dataclass(frozen=True)
class Question:
    """A single yes/no quiz question."""

    text: str
    image: bytes
    correct_answer: bool


@dataclass
class SessionState:
    """Progress of the current round, owned by the presenter."""

    total_questions: int
    question_index: int = 0
    correct_count: int = 0

    def is_last_question(self) -> bool:
        return self.question_index == self.total_questions - 1

    def reset(self) -> None:
        self.question_index = 0
        self.correct_count = 0


@dataclass(frozen=True)
class GameRecord:
    """Outcome of one finished round."""

    correct: int
    total: int
    date: datetime

    def is_better_than(self, other: "GameRecord") -> bool:
        return self.correct > other.correct


@dataclass(frozen=True)
class AggregateStatistics:
    """Snapshot of a player's statistics."""

    games_count: int
    best_game: GameRecord
    total_accuracy: float


@dataclass(frozen=True)
class StepViewModel:
    image: bytes
    question: str
    question_number: str


@dataclass(frozen=True)
class AlertRequest:
    """Modal prompt with a single acknowledgement button."""

    title: str
    message: str
    button_text: str
    completion: Optional[Callable[[], None]] = None
