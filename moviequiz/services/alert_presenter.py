import logging
from uuid import uuid4

from moviequiz.models import AlertRequest
from moviequiz.services.telegram_view import TelegramQuizView


class TelegramAlertPresenter:
    """Shows alerts as chat messages with a single inline button."""

    def __init__(self) -> None:
        self._pending: dict[str, AlertRequest] = {}

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def show_alert(self, request: AlertRequest, target: TelegramQuizView) -> None:
        token = uuid4().hex[:16]
        self._pending[token] = request
        target.send_alert(request, token)

    def acknowledge(self, token: str) -> bool:
        """Run the alert's completion once. Returns False for unknown or used tokens."""
        request = self._pending.pop(token, None)
        if request is None:
            logging.debug(f"Stale alert token: {token}")
            return False
        if request.completion is not None:
            request.completion()
        return True

    def clear(self) -> None:
        self._pending.clear()
