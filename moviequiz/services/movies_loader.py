import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional

import aiohttp

from moviequiz import config


class MoviesLoadError(Exception):
    """The movie list could not be fetched or decoded."""


@dataclass(frozen=True)
class MostPopularMovie:
    title: str
    rating: str
    image_url: str

    @property
    def resized_image_url(self) -> str:
        """Poster URL rewritten to the 600px wide variant."""
        if "._" not in self.image_url:
            return self.image_url
        return self.image_url.split("._")[0] + "._V0_UX600_.jpg"


@dataclass(frozen=True)
class MostPopularMovies:
    error_message: str
    items: list[MostPopularMovie] = field(default_factory=list)

    @classmethod
    def from_json(cls, payload: dict) -> "MostPopularMovies":
        """Parse the Top-250 API response."""
        items = [
            MostPopularMovie(
                title=item.get("title") or item.get("fullTitle", ""),
                rating=item.get("imDbRating") or "",
                image_url=item.get("image") or "",
            )
            for item in payload.get("items") or []
        ]
        return cls(error_message=payload.get("errorMessage") or "", items=items)


class MoviesLoader:
    """HTTP client for the Top-250 movies endpoint."""

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.api_url = (api_url or config.movies_api_url).rstrip("/")
        self.api_key = api_key if api_key is not None else config.imdb_api_key
        self.timeout = aiohttp.ClientTimeout(total=timeout or config.http_timeout)

    @property
    def movies_url(self) -> str:
        return f"{self.api_url}/{self.api_key}"

    async def load_movies(self) -> MostPopularMovies:
        """Fetch and decode the movie list."""
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.get(self.movies_url) as response:
                    response.raise_for_status()
                    payload = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logging.warning(f"Failed to load movies: {e!r}")
            raise MoviesLoadError(str(e) or "Не удалось загрузить список фильмов") from e

        if not isinstance(payload, dict):
            raise MoviesLoadError("Некорректный ответ сервера")
        return MostPopularMovies.from_json(payload)

    async def load_image(self, url: str) -> bytes:
        """Download a poster image."""
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.get(url) as response:
                    response.raise_for_status()
                    return await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logging.warning(f"Failed to load image {url}: {e!r}")
            raise MoviesLoadError("Не удалось загрузить постер фильма") from e
