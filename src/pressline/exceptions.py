"""Pressline Exceptions

Every error raised by the rendering pipeline carries optional location
information (file, line, column) and an optional ``cause``. Wrapping layers
add context by creating a new error whose ``cause`` is the previous one, so
the root error is never lost.
"""

from __future__ import annotations

import re
from typing import Sequence


class PresslineError(Exception):
    """Base exception for all pressline errors."""

    def __init__(
        self,
        message: str,
        *,
        file: str | None = None,
        line: int | None = None,
        column: int | None = None,
        cause: BaseException | None = None,
    ):
        self.message = message
        self.file = file
        self.line = line
        self.column = column
        self.cause = cause
        super().__init__(message)

    def location(self) -> str | None:
        """Return ``file[:line[:column]]`` or None when no file is known."""
        if not self.file:
            return None
        location = self.file
        if self.line is not None:
            location += f":{self.line}"
            if self.column is not None:
                location += f":{self.column}"
        return location

    def formatted_message(self) -> str:
        """Get a formatted error message with file context."""
        parts: list[str] = []
        location = self.location()
        if location:
            parts.append(location)
        parts.append(self.message)
        if self.cause is not None:
            parts.append(f"\nCaused by: {_cause_message(self.cause)}")
        return " - ".join(parts)


class ConfigError(PresslineError):
    """Raised when site configuration cannot be loaded or validated."""


class FrontMatterError(PresslineError):
    """Raised when a document's front matter is not valid YAML."""


class PluginError(PresslineError):
    """Raised when a plugin object cannot be registered."""


class TemplateError(PresslineError):
    """Raised when a template fails to parse or evaluate."""

    def __init__(
        self,
        message: str,
        *,
        file: str | None = None,
        line: int | None = None,
        column: int | None = None,
        template_name: str | None = None,
        cause: BaseException | None = None,
    ):
        self.template_name = template_name
        super().__init__(message, file=file, line=line, column=column, cause=cause)

    @classmethod
    def wrap(
        cls,
        error: "TemplateError",
        *,
        file: str | None = None,
        template_name: str | None = None,
    ) -> "TemplateError":
        """Re-point an error at another file/template, chaining the original.

        Line and column are carried over from ``error``.
        """
        return cls(
            error.message,
            file=file if file is not None else error.file,
            line=error.line,
            column=error.column,
            template_name=template_name if template_name is not None else error.template_name,
            cause=error,
        )

    def formatted_message(self) -> str:
        message = super().formatted_message()
        if self.template_name:
            return f"Template: {self.template_name} - {message}"
        return message


class CircularLayoutReference(PresslineError):
    """Raised when a layout chain visits the same layout twice."""

    def __init__(
        self,
        chain: Sequence[str],
        *,
        file: str | None = None,
        cause: BaseException | None = None,
    ):
        self.chain = list(chain)
        super().__init__(
            f"Circular layout reference: {' -> '.join(self.chain)}",
            file=file,
            cause=cause,
        )


class ConverterFailure(PresslineError):
    """Raised (and usually recovered from) when a converter plugin fails."""

    def __init__(
        self,
        converter: str,
        *,
        file: str | None = None,
        cause: BaseException | None = None,
    ):
        self.converter = converter
        detail = f": {cause}" if cause is not None else ""
        super().__init__(
            f"Converter '{converter}' failed{detail}", file=file, cause=cause
        )


class InvalidHookError(PresslineError):
    """Raised when a hook is registered for an unsupported owner/event pair."""

    def __init__(self, owner: str, event: str, valid: Sequence[str] = ()):
        self.owner = owner
        self.event = event
        message = f"Invalid hook '{owner}:{event}'"
        if valid:
            message += f". Valid hooks: {', '.join(valid)}"
        super().__init__(message)


def _cause_message(cause: BaseException) -> str:
    if isinstance(cause, PresslineError):
        return cause.message
    return str(cause)


_LINE_COLUMN = re.compile(r"line[:\s]+(\d+)[:,\s]+column[:\s]+(\d+)", re.IGNORECASE)
# Requires a separator before "X:Y" so URLs and timestamps do not match
_COLON_PAIR = re.compile(r"(?:^|[\s,]|at\s|position\s)(\d+):(\d+)\b")
_LINE_ONLY = re.compile(r"line[:\s]+(\d+)", re.IGNORECASE)


def parse_error_location(message: str) -> tuple[int | None, int | None]:
    """Extract line and column information from an error message.

    Args:
        message: Error text produced by the template engine.

    Returns:
        ``(line, column)``; either may be None.

    Example:
        >>> parse_error_location("unexpected '}' at line 3, column 7")
        (3, 7)
    """
    match = _LINE_COLUMN.search(message)
    if match:
        return int(match.group(1)), int(match.group(2))

    match = _COLON_PAIR.search(message)
    if match:
        return int(match.group(1)), int(match.group(2))

    match = _LINE_ONLY.search(message)
    if match:
        return int(match.group(1)), None

    return None, None
