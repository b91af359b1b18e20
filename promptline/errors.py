"""Exception types shared across promptline."""


class ConfigError(ValueError):
    """Invalid user-supplied configuration (unknown theme, field or shell)."""


class VcsError(RuntimeError):
    """A git query failed after the repository was found."""
