"""In-memory show/season/episode title hierarchy.

Populated lazily from an external metadata lookup and kept for the life of
the process. Each map has its own lock so metadata fetch threads can write
while move workers read. Absent keys are an expected case (metadata not
fetched yet), so every lookup returns None instead of raising.
"""

from __future__ import annotations

import threading
from collections.abc import Callable

from loguru import logger

log = logger.bind(stage="metadata")


def _key(number: int | str) -> str:
    """Normalize a season/episode number to its map key.

    1, "1" and "01" map to the same key; non-numeric keys are kept as-is
    (stripped).
    """
    text = str(number).strip()
    if text.isdigit():
        return str(int(text))
    return text


class Season:
    """One season of a show: episode number -> episode title."""

    def __init__(self, number: int | str) -> None:
        self.number = _key(number)
        self._episodes: dict[str, str] = {}
        self._lock = threading.Lock()

    def get_title(self, episode: int | str) -> str | None:
        with self._lock:
            return self._episodes.get(_key(episode))

    def set_episode(self, episode: int | str, title: str) -> None:
        """Insert or replace the title for an episode (last write wins)."""
        key = _key(episode)
        with self._lock:
            previous = self._episodes.get(key)
            self._episodes[key] = title
        if previous is not None and previous != title:
            log.debug(
                f"Season {self.number} episode {key}: "
                f"title {previous!r} replaced by {title!r}"
            )

    @property
    def episode_count(self) -> int:
        with self._lock:
            return len(self._episodes)

    def __repr__(self) -> str:
        return f"Season(number={self.number!r}, episodes={self.episode_count})"


class Show:
    """A TV show: identity plus season number -> Season."""

    def __init__(self, show_id: str, name: str, source_id: str = "") -> None:
        self.show_id = show_id
        self.name = name
        self.source_id = source_id
        self._seasons: dict[str, Season] = {}
        self._lock = threading.Lock()

    def get_season(self, number: int | str) -> Season | None:
        with self._lock:
            return self._seasons.get(_key(number))

    def set_season(self, number: int | str, season: Season) -> None:
        """Insert or replace a season (last write wins)."""
        with self._lock:
            self._seasons[_key(number)] = season

    @property
    def season_numbers(self) -> list[str]:
        with self._lock:
            keys = list(self._seasons)
        return sorted(keys, key=lambda k: (not k.isdigit(), int(k) if k.isdigit() else 0, k))

    def __len__(self) -> int:
        with self._lock:
            return len(self._seasons)

    def __repr__(self) -> str:
        return f"Show(id={self.show_id!r}, name={self.name!r}, seasons={len(self)})"


class ShowStore:
    """Process-wide cache of shows, keyed by the name the user searched for.

    No eviction. The loader passed to fetch_show() is the remote lookup;
    it is called at most once per name while its result is cached.
    """

    def __init__(self) -> None:
        self._shows: dict[str, Show] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _name_key(name: str) -> str:
        return " ".join(name.lower().split())

    def get_show(self, name: str) -> Show | None:
        with self._lock:
            return self._shows.get(self._name_key(name))

    def add_show(self, name: str, show: Show) -> None:
        with self._lock:
            self._shows[self._name_key(name)] = show
        log.debug(f"Cached show {name!r} as {show.name!r}")

    def fetch_show(self, name: str, loader: Callable[[str], Show | None]) -> Show | None:
        """Return the cached show, or load, cache and return it.

        A loader returning None is not cached so a later fetch retries.
        """
        show = self.get_show(name)
        if show is not None:
            return show

        show = loader(name)
        if show is None:
            log.warning(f"Show not found for name: {name!r}")
            return None

        self.add_show(name, show)
        return show

    def lookup_title(self, name: str, season: int | str, episode: int | str) -> str | None:
        """Walk show -> season -> episode; None if any level is absent."""
        show = self.get_show(name)
        if show is None:
            return None
        found = show.get_season(season)
        if found is None:
            return None
        return found.get_title(episode)

    def __len__(self) -> int:
        with self._lock:
            return len(self._shows)
