"""Prompt configuration and built-in themes.

A theme is a partial set of PromptConfig fields. It is merged onto the
defaults, so any field a theme leaves out keeps its default value.

Usage:
    from promptline.config import PromptConfig, Theme, with_theme, merge

    config = with_theme(Theme.NORD)
    config = merge(config, {"shorten_cwd": True, "shorten_home_cwd": "⌂"})
"""

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from promptline.colors import BLUE, CYAN, GREEN, RED, YELLOW, Color, Shell
from promptline.errors import ConfigError
from promptline.vcs import AHEAD_ICON, BEHIND_ICON


@dataclass(frozen=True)
class PromptConfig:
    # Colors
    cwd_color: Color = CYAN
    git_branch_color: Color = BLUE
    git_status_clean_color: Color = GREEN
    git_status_unstaged_color: Color = RED
    git_status_staged_color: Color = YELLOW

    # Icons
    git_status_clean_icon: str = "✓"
    git_status_unstaged_icon: str = "×"
    git_status_staged_icon: str = "±"
    ahead_icon: str = AHEAD_ICON
    behind_icon: str = BEHIND_ICON

    # Only print the first character of each directory but the last:
    # /tmp/my_dir/foo becomes /t/m/foo.
    shorten_cwd: bool = False
    # Replaces $HOME at the start of the directory, e.g. "~" turns
    # /home/my_user/foo into ~/foo. None disables the substitution.
    shorten_home_cwd: str | None = "~"

    # Between "<cwd> <branch> <status>" and the prompt character.
    separator: str = "\n"
    shell: Shell = Shell.BASH


class Theme(Enum):
    NORD = "nord"
    SOLARIZED = "solarized"

    @classmethod
    def from_name(cls, name: str) -> "Theme":
        """Look up a theme by its exact (lowercase) name."""
        for theme in cls:
            if theme.value == name:
                return theme
        choices = ", ".join(f"'{t.value}'" for t in cls)
        raise ConfigError(f"Expected one of: {choices}")


THEMES: dict[Theme, dict[str, Any]] = {
    Theme.NORD: {
        "cwd_color": Color.hex("#88C0D0"),  # nord8
        "git_branch_color": Color.hex("#81A1C1"),  # nord9
        "git_status_clean_color": Color.hex("#A3BE8C"),  # nord14
        "git_status_unstaged_color": Color.hex("#BF616A"),  # nord11
        "git_status_staged_color": Color.hex("#EBCB8B"),  # nord13
    },
    Theme.SOLARIZED: {
        "cwd_color": Color.hex("#2AA198"),  # cyan
        "git_branch_color": Color.hex("#268BD2"),  # blue
        "git_status_clean_color": Color.hex("#586E75"),  # base01
        "git_status_unstaged_color": Color.hex("#CB4B16"),  # orange
        "git_status_staged_color": Color.hex("#657B83"),  # base00
    },
}

FIELD_NAMES = frozenset(f.name for f in dataclasses.fields(PromptConfig))


def merge(base: PromptConfig, overrides: Mapping[str, Any]) -> PromptConfig:
    """Return *base* with the fields named in *overrides* replaced."""
    unknown = sorted(set(overrides) - FIELD_NAMES)
    if unknown:
        raise ConfigError(f"Unknown prompt field(s): {', '.join(unknown)}")
    return dataclasses.replace(base, **overrides)


def with_theme(theme: Theme | str, base: PromptConfig | None = None) -> PromptConfig:
    if isinstance(theme, str):
        theme = Theme.from_name(theme)
    return merge(base or PromptConfig(), THEMES[theme])
