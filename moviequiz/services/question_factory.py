import asyncio
import logging
import random
import weakref
from typing import Optional

from moviequiz.models import Question
from moviequiz.protocols import QuestionFactoryDelegate
from moviequiz.services.movies_loader import MoviesLoader, MoviesLoadError, MostPopularMovie

RATING_THRESHOLDS = (7, 8, 9)


def parse_rating(rating: str) -> float:
    """Parse an IMDb rating, treating missing or malformed values as 0."""
    try:
        return float(rating)
    except (TypeError, ValueError):
        return 0.0


class QuestionFactory:
    """Builds rating questions from the Top-250 movie list.

    Every operation runs as a background task and reports back through the
    delegate, which is held by weak reference.
    """

    def __init__(
        self,
        movies_loader: MoviesLoader,
        delegate: Optional[QuestionFactoryDelegate] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.movies_loader = movies_loader
        self._delegate_ref: Optional[weakref.ref] = None
        self._movies: list[MostPopularMovie] = []
        self._tasks: set[asyncio.Task] = set()
        self._rng = rng or random.Random()
        if delegate is not None:
            self.set_delegate(delegate)

    @property
    def delegate(self) -> Optional[QuestionFactoryDelegate]:
        return self._delegate_ref() if self._delegate_ref else None

    def set_delegate(self, delegate: QuestionFactoryDelegate) -> None:
        self._delegate_ref = weakref.ref(delegate)

    def load_data(self) -> None:
        self._spawn(self._load_data())

    def request_next_question(self) -> None:
        self._spawn(self._request_next_question())

    async def drain(self) -> None:
        """Wait for all running background operations."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    def _spawn(self, coro) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _load_data(self) -> None:
        try:
            movies = await self.movies_loader.load_movies()
        except MoviesLoadError as e:
            self._notify("did_fail_to_load_data", e)
            return

        if movies.error_message:
            logging.warning(f"Movies API reported an error: {movies.error_message}")
            self._notify("did_receive_error_message", movies.error_message)
        elif not movies.items:
            self._notify("did_receive_error_message", "Список фильмов пуст")
        else:
            self._movies = list(movies.items)
            logging.info(f"Loaded {len(self._movies)} movies")
            self._notify("did_load_data_from_server")

    async def _request_next_question(self) -> None:
        try:
            question = await self.make_question()
        except MoviesLoadError as e:
            self._notify("did_receive_error_message", str(e))
            return
        self._notify("did_receive_next_question", question)

    async def make_question(self) -> Optional[Question]:
        """Build a question about a random loaded movie, or None if there are none."""
        if not self._movies:
            return None

        movie = self._rng.choice(self._movies)
        image = await self.movies_loader.load_image(movie.resized_image_url)

        rating = parse_rating(movie.rating)
        threshold = self._rng.choice(RATING_THRESHOLDS)
        return Question(
            text=f"Рейтинг этого фильма больше чем {threshold}?",
            image=image,
            correct_answer=rating > threshold,
        )

    def _notify(self, callback: str, *args) -> None:
        delegate = self.delegate
        if delegate is None:
            logging.debug(f"Dropped {callback}: delegate is gone")
            return
        getattr(delegate, callback)(*args)
