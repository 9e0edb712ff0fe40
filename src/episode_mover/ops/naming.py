"""Build destination paths from show/season/episode metadata.

Filenames come from a replacement mask, e.g. "%S [%sx%0e] %t":

    %S   show name
    %s   season number
    %0s  season number, two digits
    %e   episode number
    %0e  episode number, two digits (three from 100 on)
    %t   episode title
    %T   episode title with spaces replaced by dots

Folder layout: <dest_root>/<Show>/<Season prefix><NN>/<formatted name><suffix>
"""

from __future__ import annotations

import re
from pathlib import Path

from loguru import logger

from ..models import DUPLICATES_DIRECTORY
from ..sanitize import make_dot_title, sanitize_filename, sanitize_title

log = logger.bind(stage="naming")

DEFAULT_REPLACEMENT_MASK = "%S [%sx%0e] %t"
DEFAULT_SEASON_PREFIX = "Season "

# Longest tokens first so "%0s" is not read as "%0" + "s"
_TOKEN_RE = re.compile(r"%0s|%0e|%S|%s|%e|%t|%T")


def _as_int(number: int | str) -> int | None:
    text = str(number).strip()
    return int(text) if text.isdigit() else None


def _pad(number: int | str, width: int) -> str:
    value = _as_int(number)
    if value is None:
        return str(number).strip()
    return f"{value:0{width}d}"


def format_episode_name(
    mask: str,
    show: str,
    season: int | str,
    episode: int | str,
    title: str,
) -> str:
    """Expand the replacement mask in one pass and sanitize the result."""
    season_value = _as_int(season)
    episode_value = _as_int(episode)
    values = {
        "%S": show,
        "%s": str(season_value if season_value is not None else season).strip(),
        "%0s": _pad(season, 2),
        "%e": str(episode_value if episode_value is not None else episode).strip(),
        "%0e": _pad(episode, 3 if (episode_value or 0) >= 100 else 2),
        "%t": title,
        "%T": make_dot_title(title),
    }
    name = _TOKEN_RE.sub(lambda m: values[m.group(0)], mask)
    return sanitize_title(name)


def build_season_dir(
    dest_root: Path,
    show: str,
    season: int | str,
    season_prefix: str = DEFAULT_SEASON_PREFIX,
) -> Path:
    """<dest_root>/<Show>/<prefix><NN>."""
    show_dir = sanitize_filename(show) or "Unknown"
    return dest_root / show_dir / sanitize_filename(f"{season_prefix}{_pad(season, 2)}")


def build_episode_path(
    dest_root: Path,
    show: str,
    season: int | str,
    episode: int | str,
    title: str,
    suffix: str,
    mask: str = DEFAULT_REPLACEMENT_MASK,
    season_prefix: str = DEFAULT_SEASON_PREFIX,
) -> Path:
    """Full destination path for one episode file.

    suffix is the file extension including its dot (".mp4").
    """
    season_dir = build_season_dir(dest_root, show, season, season_prefix)
    name = sanitize_filename(format_episode_name(mask, show, season, episode, title) + suffix)
    result = season_dir / name
    log.debug(f"build_episode_path result: {result}")
    return result


def versioned_path(path: Path, index: int) -> Path:
    """<parent>/versions/<stem> (<index>)<suffix> for a batch duplicate."""
    return path.parent / DUPLICATES_DIRECTORY / f"{path.stem} ({index}){path.suffix}"
