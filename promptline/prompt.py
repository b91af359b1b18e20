"""Prompt composition.

Format: <cwd> <branch> <status-icon><separator><prompt-char><space>
Outside a repository: <cwd><separator><prompt-char><space>
"""

import sys
from typing import BinaryIO

from promptline.colors import paint
from promptline.config import PromptConfig
from promptline.cwd import display_cwd
from promptline.identity import UserIdentity, prompt_char
from promptline.vcs import GitStatus, VcsBackend, vcs_status


def _status_icon(config: PromptConfig, category: GitStatus) -> str:
    if category is GitStatus.UNSTAGED:
        icon, color = config.git_status_unstaged_icon, config.git_status_unstaged_color
    elif category is GitStatus.STAGED:
        icon, color = config.git_status_staged_icon, config.git_status_staged_color
    else:
        icon, color = config.git_status_clean_icon, config.git_status_clean_color
    return paint(icon, color, config.shell)


def render(
    config: PromptConfig | None = None,
    *,
    cwd: str | None = None,
    home: str | None = None,
    pwd: str | None = None,
    identity: UserIdentity | None = None,
    backend: VcsBackend | None = None,
) -> str:
    """Build the prompt string for the current process state.

    Args:
        config: Colors, icons and layout; defaults to PromptConfig().
        cwd: Directory to display (default os.getcwd()).
        home: Home directory for "~" substitution (default $HOME).
        pwd: Directory to look for a repository from (default $PWD).
        identity: uid source for the prompt character.
        backend: git query backend (default GitBackend()).

    Returns:
        The prompt, always ending in the prompt character and one space.
    """
    config = config or PromptConfig()

    cwd_text = paint(display_cwd(config, cwd=cwd, home=home), config.cwd_color, config.shell)

    status = vcs_status(
        pwd,
        backend=backend,
        ahead_icon=config.ahead_icon,
        behind_icon=config.behind_icon,
    )

    # Never colored: escape codes around the prompt character break cursor
    # tracking in several shells.
    pchar = prompt_char(identity)

    if status is None:
        return f"{cwd_text}{config.separator}{pchar} "

    branch = paint(status.branch_label, config.git_branch_color, config.shell)
    icon = _status_icon(config, status.category)
    return f"{cwd_text} {branch} {icon}{config.separator}{pchar} "


def show(config: PromptConfig | None = None, stream: BinaryIO | None = None) -> None:
    """Render the prompt and write it to *stream* (default stdout), no newline."""
    line = render(config)
    stream = stream or sys.stdout.buffer
    # 'replace' keeps a non-UTF-8 terminal locale from crashing the prompt.
    stream.write(line.encode("utf-8", errors="replace"))
    stream.flush()
