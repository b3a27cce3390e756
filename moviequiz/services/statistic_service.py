from datetime import datetime

from moviequiz.db.repository import GameRepository
from moviequiz.models import AggregateStatistics, GameRecord

DATE_TIME_FORMAT = "%d.%m.%y %H:%M"


def date_time_string(date: datetime) -> str:
    """Format a game date the way it is shown to players."""
    return date.strftime(DATE_TIME_FORMAT)


class StatisticService:
    """Persistent statistics of one player (Telegram chat)."""

    def __init__(self, player_id: int) -> None:
        self.player_id = player_id

    def store(self, correct: int, total: int) -> None:
        """Record a finished round."""
        GameRepository.add(self.player_id, correct, total)

    @property
    def games_count(self) -> int:
        return GameRepository.count(self.player_id)

    @property
    def best_game(self) -> GameRecord:
        best = GameRepository.best(self.player_id)
        if best is None:
            return GameRecord(correct=0, total=0, date=datetime.now())
        return best

    @property
    def total_accuracy(self) -> float:
        """Share of correct answers over all rounds, in percent."""
        correct, total = GameRepository.totals(self.player_id)
        if total == 0:
            return 0.0
        return correct / total * 100

    def snapshot(self) -> AggregateStatistics:
        return AggregateStatistics(
            games_count=self.games_count,
            best_game=self.best_game,
            total_accuracy=self.total_accuracy,
        )

    def get_stats_text(self) -> str:
        """Get formatted statistics text for display."""
        stats = self.snapshot()
        if stats.games_count == 0:
            return "Вы ещё не сыграли ни одного квиза"
        best = stats.best_game
        lines = [
            f"Количество сыгранных квизов: {stats.games_count}",
            f"Рекорд: {best.correct}/{best.total} ({date_time_string(best.date)})",
            f"Средняя точность: {stats.total_accuracy:.2f}%",
        ]
        latest = GameRepository.latest(self.player_id)
        if latest is not None:
            lines.append(
                f"Последняя игра: {latest.correct}/{latest.total} ({date_time_string(latest.date)})"
            )
        return "\n".join(lines)
