"""
Error types for pattern detection and auto-fixing.
"""

from pathlib import Path


class PatternDetectionError(Exception):
    """Base exception for all pattern detection errors."""

    def __init__(self, message: str, path: Path | None = None):
        self.message = message
        self.path = path
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.path is not None:
            return f"{self.path}: {self.message}"
        return self.message


class ParseError(PatternDetectionError):
    """
    Raised when a configuration file cannot be read.

    Examples:
    - File does not exist
    - Permission denied
    - Content is not valid UTF-8

    Malformed TypeScript never raises; the parser recovers instead.
    """

    pass


class FixApplicationError(PatternDetectionError):
    """
    Raised when a fix cannot be applied to the source it targets.

    Examples:
    - Fix offsets fall outside the source text
    - Text at the fix offsets no longer matches ``old_code``
    - The file changed on disk since it was parsed
    """

    pass
