from datetime import datetime
from typing import Optional
from sqlalchemy import func

from moviequiz.db.models import GameResult, get_session
from moviequiz.models import GameRecord


def _to_record(row: GameResult) -> GameRecord:
    return GameRecord(correct=row.correct, total=row.total, date=row.played_at)


class GameRepository:
    """Repository for finished game rounds."""

    @staticmethod
    def add(
        player_id: int, correct: int, total: int, played_at: Optional[datetime] = None
    ) -> GameRecord:
        """Persist a finished round."""
        with get_session() as session:
            row = GameResult(
                player_id=player_id,
                correct=correct,
                total=total,
                played_at=played_at or datetime.now(),
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return _to_record(row)

    @staticmethod
    def count(player_id: int) -> int:
        """Number of rounds the player has finished."""
        with get_session() as session:
            return (
                session.query(func.count(GameResult.id))
                .filter(GameResult.player_id == player_id)
                .scalar()
            )

    @staticmethod
    def best(player_id: int) -> Optional[GameRecord]:
        """Earliest round with the highest number of correct answers."""
        with get_session() as session:
            row = (
                session.query(GameResult)
                .filter(GameResult.player_id == player_id)
                .order_by(GameResult.correct.desc(), GameResult.played_at.asc(), GameResult.id.asc())
                .first()
            )
            return _to_record(row) if row else None

    @staticmethod
    def totals(player_id: int) -> tuple[int, int]:
        """Sum of correct answers and sum of questions over all rounds."""
        with get_session() as session:
            correct, total = (
                session.query(
                    func.coalesce(func.sum(GameResult.correct), 0),
                    func.coalesce(func.sum(GameResult.total), 0),
                )
                .filter(GameResult.player_id == player_id)
                .one()
            )
            return int(correct), int(total)

    @staticmethod
    def latest(player_id: int) -> Optional[GameRecord]:
        """Most recently played round."""
        with get_session() as session:
            row = (
                session.query(GameResult)
                .filter(GameResult.player_id == player_id)
                .order_by(GameResult.played_at.desc(), GameResult.id.desc())
                .first()
            )
            return _to_record(row) if row else None
