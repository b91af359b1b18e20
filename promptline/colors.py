"""Shell-safe terminal colors.

Every colored segment is emitted as

    <open>ESC[..m<close>text<open>ESC[0m<close>

where <open>/<close> are the shell's zero-width markers. Without them bash and
zsh count the escape bytes as printable and the cursor drifts once the line
wraps or history is recalled.
"""

import re
from dataclasses import dataclass
from enum import Enum

RESET = "\033[0m"

_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{2})([0-9a-fA-F]{2})([0-9a-fA-F]{2})$")


@dataclass(frozen=True)
class Color:
    """A foreground color, stored as its SGR parameter ("36", "38;2;r;g;b")."""

    sgr: str

    @classmethod
    def rgb(cls, r: int, g: int, b: int) -> "Color":
        for channel in (r, g, b):
            if not 0 <= channel <= 255:
                raise ValueError(f"RGB channel out of range: {channel}")
        return cls(f"38;2;{r};{g};{b}")

    @classmethod
    def hex(cls, value: str) -> "Color":
        """Build a 24-bit color from "#RRGGBB" (the leading # is optional)."""
        m = _HEX_RE.match(value.strip())
        if not m:
            raise ValueError(f"Not a hex color: {value!r}")
        return cls.rgb(*(int(part, 16) for part in m.groups()))

    @property
    def prefix(self) -> str:
        return f"\033[{self.sgr}m"

    @property
    def suffix(self) -> str:
        return RESET


# ---------------------------------------------------------------------------
# Named ANSI palette (foreground 30-37)
# ---------------------------------------------------------------------------
BLACK  = Color("30")
RED    = Color("31")
GREEN  = Color("32")
YELLOW = Color("33")
BLUE   = Color("34")
PURPLE = Color("35")
CYAN   = Color("36")
WHITE  = Color("37")


class Shell(Enum):
    """Target shell; decides which zero-width markers wrap escape bytes."""

    BASH = "bash"
    ZSH = "zsh"
    READLINE = "readline"

    @property
    def markers(self) -> tuple[str, str]:
        return _MARKERS[self]

    def escape(self, text: str) -> str:
        """Escape characters the shell's prompt expansion would interpret.

        bash decodes PS1 backslash escapes and then expands $, ${}, $() and
        backticks (promptvars), so escaping has to survive both passes: a
        backslash becomes four backslashes, $ and ` get two in front.

        zsh only needs % doubled here. It does not re-expand $ in an assigned PS1
        unless PROMPT_SUBST is set; with PROMPT_SUBST use
        PS1='$(promptline --shell zsh)', whose output is not re-expanded.
        """
        if self is Shell.BASH:
            return (
                text.replace("\\", "\\\\\\\\")
                .replace("$", "\\\\$")
                .replace("`", "\\\\`")
            )
        if self is Shell.ZSH:
            return text.replace("%", "%%")
        return text


_MARKERS = {
    Shell.BASH: ("\\[", "\\]"),
    Shell.ZSH: ("%{", "%}"),
    Shell.READLINE: ("\x01", "\x02"),
}


def paint(text: str, color: Color, shell: Shell = Shell.BASH) -> str:
    """Wrap *text* in *color*, bracketing only the escape sequences."""
    start, end = shell.markers
    return (
        f"{start}{color.prefix}{end}"
        f"{shell.escape(text)}"
        f"{start}{color.suffix}{end}"
    )
