from __future__ import annotations


class TypeGitError(Exception):
    """Base exception class for all typegit-specific errors.

    This is the root of the typegit exception hierarchy. Catching it at an
    application boundary catches every failure raised by this library while
    letting system exceptions (and exceptions raised by a spawn adapter)
    propagate naturally.

    Attributes:
        message: Human-readable error message describing what went wrong.

    Example:
        ```python
        try:
            await runner.run_or_raise(WorktreeContext("/repo"), ["fetch"])
        except TypeGitError as e:
            logger.error("git_failed", error=e.message)
        ```
    """

    def __init__(self, message: str) -> None:
        """Initialize the TypeGitError.

        Args:
            message: Human-readable error message.
        """
        self.message = message
        super().__init__(message)
