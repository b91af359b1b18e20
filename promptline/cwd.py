"""Working directory display: home substitution and path shortening."""

import logging
import os
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from promptline.config import PromptConfig

logger = logging.getLogger(__name__)


def current_dir() -> str | None:
    """Return os.getcwd(), or None if the directory is gone or unreadable."""
    try:
        return os.getcwd()
    except OSError as exc:
        logger.debug(f"Cannot read current directory: {exc}")
        return None


def substitute_home(path: str, home: str | None, token: str) -> str:
    """Replace a leading *home* in *path* with *token*.

    Only whole segments match: with home=/home/alice, /home/alice and
    /home/alice/src are rewritten, /home/alicexyz is left alone.
    """
    if not home:
        return path
    home = home.rstrip("/") or "/"
    if home == "/":
        # Everything is under /; only the root itself is "home".
        return token if path == "/" else path
    if path == home or path.startswith(home + "/"):
        return token + path[len(home):]
    return path


def shorten_path(path: str) -> str:
    """Cut every segment but the last down to its first character.

    >>> shorten_path("/home/alice/projects/app")
    '/h/a/p/app'
    >>> shorten_path("~/projects/app")
    '~/p/app'
    """
    leading = "/" if path.startswith("/") else ""
    parts = [part for part in path.split("/") if part]
    if not parts:
        return path
    short = [part[0] for part in parts[:-1]]
    short.append(parts[-1])
    return leading + "/".join(short)


def display_cwd(config: "PromptConfig", cwd: str | None = None, home: str | None = None) -> str:
    """Directory segment text for *config*; "" when the cwd is unavailable.

    *cwd* and *home* default to os.getcwd() and $HOME.
    """
    path = cwd if cwd is not None else current_dir()
    if path is None:
        return ""

    if config.shorten_home_cwd is not None:
        if home is None:
            home = os.environ.get("HOME")
        path = substitute_home(path, home, config.shorten_home_cwd)

    if config.shorten_cwd:
        path = shorten_path(path)

    return path
