#!/usr/bin/env python3
"""promptline - git-aware shell prompt.

Bash (~/.bashrc):
    PROMPT_COMMAND='PS1="$(promptline)"'

Bash, prompt string evaluated by readline directly:
    PS1='$(promptline --shell readline)'

zsh (~/.zshrc):
    setopt PROMPT_SUBST
    PS1='$(promptline --shell zsh)'

    Do not assign the output itself (PS1="$(promptline ...)") while
    PROMPT_SUBST is set: zsh would expand $ and backticks in directory and
    branch names.

Fully custom prompt (no theme):
    from promptline.colors import GREEN, PURPLE, RED, YELLOW, Color
    from promptline.config import PromptConfig
    from promptline.prompt import show

    show(PromptConfig(
        cwd_color=PURPLE,
        git_branch_color=Color.rgb(0x17, 0xC8, 0xB0),
        git_status_clean_color=GREEN,
        git_status_unstaged_color=RED,
        git_status_staged_color=YELLOW,
        git_status_clean_icon="➖",
        git_status_unstaged_icon="❌",
        git_status_staged_icon="➕",
        shorten_cwd=False,
        shorten_home_cwd="⌂",
    ))

Environment:
    PROMPTLINE_THEME   default for --theme
    PROMPTLINE_SHELL   default for --shell
    PROMPTLINE_DEBUG   set to 1 to log resolution details to stderr
"""

import argparse
import logging
import os

from promptline.colors import Shell
from promptline.config import PromptConfig, Theme, merge, with_theme
from promptline.errors import ConfigError
from promptline.prompt import show

__version__ = "0.1.0"

logger = logging.getLogger(__name__)


def _theme_arg(value: str) -> Theme:
    try:
        return Theme.from_name(value)
    except ConfigError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _shell_arg(value: str) -> Shell:
    try:
        return Shell(value)
    except ValueError:
        choices = ", ".join(f"'{s.value}'" for s in Shell)
        raise argparse.ArgumentTypeError(f"Expected one of: {choices}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="promptline", description="Git-aware shell prompt")
    parser.add_argument(
        "--theme",
        type=_theme_arg,
        default=os.environ.get("PROMPTLINE_THEME") or None,
        help="Built-in color theme: nord, solarized",
    )
    parser.add_argument(
        "--shell",
        type=_shell_arg,
        default=os.environ.get("PROMPTLINE_SHELL") or Shell.BASH.value,
        help="Escape markers for bash (default), zsh or readline",
    )
    parser.add_argument("--shorten", action="store_true", help="Abbreviate parent directories to one letter")
    parser.add_argument("--no-home", action="store_true", help="Do not replace $HOME with ~")
    parser.add_argument(
        "--debug",
        action="store_true",
        default=os.environ.get("PROMPTLINE_DEBUG") == "1",
        help="Log to stderr at DEBUG level",
    )
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def config_from_args(args: argparse.Namespace) -> PromptConfig:
    config = with_theme(args.theme) if args.theme else PromptConfig()
    overrides = {"shell": args.shell}
    if args.shorten:
        overrides["shorten_cwd"] = True
    if args.no_home:
        overrides["shorten_home_cwd"] = None
    return merge(config, overrides)


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

    config = config_from_args(args)
    logger.debug(f"Rendering with {config}")
    show(config)


if __name__ == "__main__":
    main()
