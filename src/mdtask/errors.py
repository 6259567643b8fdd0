"""
Parse errors for task documents.

Every error aborts the parse. Each carries a `kind` (the class name) plus
whatever context was known when it was raised: task name, 1-based line
number and the raw line.
"""

from typing import Optional


class TaskParseError(ValueError):
    """Base class for all task document parse failures."""

    def __init__(
        self,
        message: str,
        *,
        task: Optional[str] = None,
        line_no: Optional[int] = None,
        line: Optional[str] = None,
    ):
        self.message = message
        self.task = task
        self.line_no = line_no
        self.line = line
        super().__init__(self._format())

    @property
    def kind(self) -> str:
        return type(self).__name__

    def _format(self) -> str:
        parts = [self.message]
        if self.task is not None:
            parts.append(f"task={self.task!r}")
        if self.line_no is not None:
            parts.append(f"line {self.line_no}")
        return " | ".join(parts)


class NoTasksHeading(TaskParseError):
    """The configured section heading is not in the document."""


class CommandlessTask(TaskParseError):
    """A task has neither a script nor a dependency."""


class DuplicateAttribute(TaskParseError):
    """A set-once attribute was given twice for one task."""

    def __init__(self, message: str, *, attribute: str, **kwargs):
        self.attribute = attribute
        super().__init__(message, **kwargs)


class InvalidRunValue(TaskParseError):
    """The run attribute is not one of the recognized literals."""

    def __init__(self, message: str, *, value: str, **kwargs):
        self.value = value
        super().__init__(message, **kwargs)


class MultipleCodeBlocks(TaskParseError):
    """A task body has more than one fenced code block."""


class UnterminatedCodeBlock(TaskParseError):
    """A fenced code block was opened and never closed."""


class TaskFileError(RuntimeError):
    """The task file exists but cannot be read as UTF-8 text."""

    def __init__(self, message: str, *, path):
        self.path = path
        super().__init__(message)
