from __future__ import annotations

from pathlib import Path
from typing import Any

from typegit.exceptions.base import TypeGitError


class ConfigError(TypeGitError):
    """Invalid or unreadable typegit configuration.

    Raised by ``load_config()`` for YAML syntax errors, a config file that is
    not a mapping, and values rejected by validation (from a file or from a
    ``TYPEGIT_*`` variable).

    Attributes:
        message: Human-readable description of the problem.
        field: Dotted name of the offending field (``credential.helper``).
        value: The rejected value.
        path: Config file the problem was found in, when known.

    Example:
        ```python
        raise ConfigError(
            "Invalid configuration: Input should be greater than 0",
            field="termination_grace_period",
            value=-1,
        )
        ```
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
        path: Path | None = None,
    ) -> None:
        self.field = field
        self.value = value
        self.path = path
        super().__init__(message)
