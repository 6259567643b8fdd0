"""
Single-pass parser for task catalogues written in Markdown.

Document shape:

    # Tasks

    ## build
    Builds the project.

    Requires: generate
    Env: `GOOS=linux`

    ```sh
    go build ./...
    ```

The section heading is matched case-insensitively; every heading one level
deeper starts a task. Inside a task body a line is either a fenced block
delimiter, an attribute line (`key: value`) or description text.

Design goals:
- Line-oriented, forward-only (no Markdown AST, no backtracking past one line)
- Permissive: anything that is not a recognized attribute is description
- Strict: every structural error aborts the whole parse
"""

from __future__ import annotations

import re
import string
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Optional

from mdtask.errors import (
    CommandlessTask,
    DuplicateAttribute,
    InvalidRunValue,
    MultipleCodeBlocks,
    NoTasksHeading,
    UnterminatedCodeBlock,
)
from mdtask.models import RequiredBehaviour, Task

CODE_FENCE = "```"
HEADING_RE = re.compile(r"^(?P<marks>#+)\s+(?P<text>\S.*?)\s*$")
ATTRIBUTE_RE = re.compile(r"^(?P<key>[^:]+):(?P<value>.*)$")

# Emphasis and inline code markup, stripped from attribute keys and values
MARKUP_CHARS = "*_`"
_STRIP_CHARS = string.whitespace + MARKUP_CHARS

# Balanced markup pairs. Underscores only count at word boundaries, so
# MY_VAR_NAME and ./some_dir are left alone.
MARKUP_PAIR_RE = re.compile(
    r"(?P<mark>```|``|`|\*\*|\*)(?P<text>.+?)(?P=mark)"
    r"|(?<!\w)(?P<umark>__|_)(?P<utext>.+?)(?P=umark)(?!\w)"
)


@dataclass(frozen=True)
class AttributeSpec:
    canonical: str  # Lowercase full name
    min_prefix: str  # Shortest accepted abbreviation
    field: str  # Task field it populates
    rule: str  # "append" | "set_once" | "run"

    def matches(self, key: str) -> bool:
        return self.canonical.startswith(key) and key.startswith(self.min_prefix)


ATTRIBUTES: tuple[AttributeSpec, ...] = (
    AttributeSpec("environment", "env", "env", "append"),
    AttributeSpec("requires", "req", "depends_on", "append"),
    AttributeSpec("inputs", "inputs", "inputs", "append"),
    AttributeSpec("directory", "dir", "dir", "set_once"),
    AttributeSpec("run", "run", "required_behaviour", "run"),
)

RUN_VALUES = {
    "always": RequiredBehaviour.ALWAYS,
    "once": RequiredBehaviour.ONCE,
}


def _unwrap(m: re.Match[str]) -> str:
    return m.group("text") if m.group("mark") else m.group("utext")


def normalize_value(raw: str) -> str:
    """
    Strip emphasis/code markup and surrounding whitespace from a value.

    Balanced pairs are unwrapped wherever they appear (repeatedly, for
    nested markup), then stray markup is trimmed from both ends.

    Examples:
        >>> normalize_value(" _*`my:attribute_*`")
        'my:attribute'
        >>> normalize_value("FOO=*bar*")
        'FOO=bar'
        >>> normalize_value("**./some_dir**")
        './some_dir'
    """
    value = raw
    while True:
        unwrapped = MARKUP_PAIR_RE.sub(_unwrap, value)
        if unwrapped == value:
            break
        value = unwrapped
    return value.strip(_STRIP_CHARS)


def split_list(raw: str) -> list[str]:
    """Split a comma-separated attribute value into normalized, non-empty items."""
    items = []
    for piece in normalize_value(raw).split(","):
        item = normalize_value(piece)
        if item:
            items.append(item)
    return items


def lookup_attribute(key: str) -> Optional[AttributeSpec]:
    """Find the attribute a (possibly abbreviated, any-case) key refers to."""
    key = normalize_value(key).lower()
    if not key:
        return None
    for spec in ATTRIBUTES:
        if spec.matches(key):
            return spec
    return None


def is_attribute_line(line: str) -> bool:
    """True if the line would be read as a recognized attribute."""
    m = ATTRIBUTE_RE.match(line.strip())
    return bool(m) and lookup_attribute(m.group("key")) is not None


def match_heading(line: str) -> Optional[tuple[int, str]]:
    """Return (level, text) if the line is an ATX heading, else None."""
    m = HEADING_RE.match(line.strip())
    if not m:
        return None
    return len(m.group("marks")), m.group("text")


def opens_code_block(line: str) -> bool:
    """A fence line, optionally followed by an info string (```sh)."""
    stripped = line.strip()
    return stripped.startswith(CODE_FENCE) and "`" not in stripped[len(CODE_FENCE):]


class LineScanner:
    """Forward-only line source with a one-line push-back."""

    def __init__(self, lines: Iterable[str]):
        self._lines = iter(lines)
        self._pending: Optional[str] = None
        self.line_no = 0

    def next(self) -> Optional[str]:
        if self._pending is not None:
            line, self._pending = self._pending, None
        else:
            line = next(self._lines, None)
            if line is None:
                return None
        self.line_no += 1
        return line

    def push_back(self, line: str) -> None:
        self._pending = line
        self.line_no -= 1


class TaskParser:
    """
    Parser for one task document.

    Usage:
        with open("README.md", encoding="utf-8") as f:
            tasks = TaskParser(f, "Tasks").parse()

    Instances are single-use: the input is consumed as it is parsed.
    """

    def __init__(self, source: Iterable[str], heading: str = "Tasks"):
        """
        Args:
            source: Text stream or any iterable of lines
            heading: Section name introducing the task catalogue
        """
        self.heading = heading.strip()
        self.scanner = LineScanner(source)
        self.section_level: Optional[int] = None
        self.current_task: Optional[Task] = None
        self._task_line_no = 0
        self._exhausted = False

    def locate_section(self) -> int:
        """
        Skip to the section heading and return its level.

        Raises:
            NoTasksHeading: If no heading matches before end of input
        """
        wanted = self.heading.casefold()
        while True:
            line = self.scanner.next()
            if line is None:
                raise NoTasksHeading(f"No {self.heading!r} heading found")
            heading = match_heading(line)
            if heading and heading[1].casefold() == wanted:
                self.section_level = heading[0]
                return self.section_level

    def parse(self) -> list[Task]:
        """Parse every task in the section, in document order."""
        tasks = []
        while True:
            task = self.parse_task()
            if task is None:
                return tasks
            tasks.append(task)

    def parse_task(self) -> Optional[Task]:
        """
        Parse the next task block.

        Returns:
            The finalized task, or None once the section has no more tasks
        """
        if self.section_level is None:
            self.locate_section()
        if self._exhausted:
            return None

        task_level = self.section_level + 1

        # Advance to the next sub-heading
        while True:
            line = self.scanner.next()
            if line is None:
                self._exhausted = True
                return None
            heading = match_heading(line)
            if heading is None:
                continue
            level, text = heading
            if level < task_level:
                # Sibling or parent of the section heading: catalogue is over
                self._exhausted = True
                return None
            if level == task_level:
                break

        self.current_task = Task(name=text)
        self._task_line_no = self.scanner.line_no

        while True:
            line = self.scanner.next()
            if line is None:
                self._exhausted = True
                break
            if self._ends_task_block(line):
                self.scanner.push_back(line)
                break
            self.parse_line(line)

        return self._finalize()

    def _ends_task_block(self, line: str) -> bool:
        """A heading at task level or shallower closes the current task."""
        heading = match_heading(line)
        if heading is None or self.section_level is None:
            return False
        return heading[0] <= self.section_level + 1

    def parse_line(self, line: str) -> None:
        """Feed one body line of the current task."""
        if opens_code_block(line):
            self.parse_code_block(line)
            return
        if self.parse_attribute(line):
            return
        text = line.strip()
        if text:
            self.current_task.description.append(text)

    def parse_attribute(self, line: str) -> bool:
        """
        Merge an attribute line into the current task.

        Returns:
            False if the line is not an attribute line (not an error)

        Raises:
            DuplicateAttribute: Directory given twice
            InvalidRunValue: Run value other than always/once
        """
        m = ATTRIBUTE_RE.match(line.strip())
        if not m:
            return False
        spec = lookup_attribute(m.group("key"))
        if spec is None:
            return False

        task = self.current_task
        raw = m.group("value")

        if spec.rule == "append":
            getattr(task, spec.field).extend(split_list(raw))
        elif spec.rule == "set_once":
            value = normalize_value(raw)
            if value:
                if getattr(task, spec.field):
                    raise DuplicateAttribute(
                        f"{spec.canonical} already set",
                        attribute=spec.canonical,
                        task=task.name,
                        line_no=self.scanner.line_no,
                        line=line.rstrip("\r\n"),
                    )
                setattr(task, spec.field, value)
        elif spec.rule == "run":
            value = normalize_value(raw)
            if value:
                behaviour = RUN_VALUES.get(value.lower())
                if behaviour is None:
                    raise InvalidRunValue(
                        f"Invalid run value {value!r}, expected one of: {', '.join(RUN_VALUES)}",
                        value=value,
                        task=task.name,
                        line_no=self.scanner.line_no,
                        line=line.rstrip("\r\n"),
                    )
                task.required_behaviour = behaviour

        return True

    def parse_code_block(self, opening_line: str) -> None:
        """
        Capture a fenced block into the current task's script.

        The opening delimiter has already been read; lines are consumed up to
        and including the closing delimiter.
        """
        task = self.current_task
        start_line_no = self.scanner.line_no
        if task.script:
            raise MultipleCodeBlocks(
                "Task has more than one code block",
                task=task.name,
                line_no=start_line_no,
                line=opening_line.rstrip("\r\n"),
            )

        script: list[str] = []
        while True:
            line = self.scanner.next()
            if line is None:
                raise UnterminatedCodeBlock(
                    "Code block is never closed",
                    task=task.name,
                    line_no=start_line_no,
                    line=opening_line.rstrip("\r\n"),
                )
            if self._ends_task_block(line):
                self.scanner.push_back(line)
                raise UnterminatedCodeBlock(
                    "Code block is not closed before the next heading",
                    task=task.name,
                    line_no=start_line_no,
                    line=opening_line.rstrip("\r\n"),
                )
            if line.strip() == CODE_FENCE:
                break
            script.append(line.rstrip("\r\n") + "\n")

        task.script = "".join(script)

    def _finalize(self) -> Task:
        task = self.current_task
        if not task.script and not task.depends_on:
            raise CommandlessTask(
                "Task has no script and no dependencies",
                task=task.name,
                line_no=self._task_line_no,
            )
        return task


def parse_tasks(source: Iterable[str], heading: str = "Tasks") -> list[Task]:
    """
    Parse a task document.

    Args:
        source: Text stream or iterable of lines
        heading: Section name introducing the task catalogue

    Returns:
        Tasks in heading order

    Raises:
        TaskParseError: Any structural problem; no partial result is returned
    """
    return TaskParser(source, heading).parse()
