"""
Task catalogue models.

A Task is produced by the Markdown parser and consumed by whatever runs it.
Models are plain pydantic models so they can be dumped to JSON by the CLI.
"""

from enum import Enum

from pydantic import BaseModel, Field


class RequiredBehaviour(str, Enum):
    """Run policy for a task."""

    DEFAULT = "default"
    ALWAYS = "always"
    ONCE = "once"


class Task(BaseModel):
    """One named, runnable unit of work."""

    name: str
    description: list[str] = Field(default_factory=list)  # One entry per source line
    script: str = ""  # Body of the fenced block, newline-terminated
    dir: str = ""  # Working directory, empty means caller's cwd
    required_behaviour: RequiredBehaviour = RequiredBehaviour.DEFAULT
    depends_on: list[str] = Field(default_factory=list)
    inputs: list[str] = Field(default_factory=list)
    env: list[str] = Field(default_factory=list)  # Raw key=value strings

    @property
    def is_commandless(self) -> bool:
        """True when the task only exists to depend on other tasks."""
        return not self.script

    def to_markdown(self, level: int = 2) -> str:
        """
        Render the task back into the task grammar.

        Nothing is escaped: a task that would not parse back to itself is
        rejected instead of rendered.

        Args:
            level: Heading level for the task name

        Returns:
            Markdown text ending with a newline

        Raises:
            ValueError: If a description or script line would be read as
                markup (attribute, fence or heading) when parsed back
        """
        from mdtask.parser import CODE_FENCE, is_attribute_line, match_heading, opens_code_block

        for line in self.description:
            heading = match_heading(line)
            if is_attribute_line(line) or opens_code_block(line) or (heading and heading[0] <= level):
                raise ValueError(f"Task {self.name!r}: description line cannot be rendered: {line!r}")
        for line in self.script.splitlines():
            heading = match_heading(line)
            if line.strip() == CODE_FENCE or (heading and heading[0] <= level):
                raise ValueError(f"Task {self.name!r}: script line cannot be rendered: {line!r}")

        lines = [f"{'#' * level} {self.name}", ""]
        if self.description:
            lines.extend(self.description)
            lines.append("")

        attributes = []
        if self.depends_on:
            attributes.append(f"Requires: {', '.join(self.depends_on)}")
        if self.inputs:
            attributes.append(f"Inputs: {', '.join(self.inputs)}")
        if self.env:
            attributes.append(f"Env: {', '.join(self.env)}")
        if self.dir:
            attributes.append(f"Directory: {self.dir}")
        if self.required_behaviour != RequiredBehaviour.DEFAULT:
            attributes.append(f"Run: {self.required_behaviour.value}")
        if attributes:
            lines.extend(attributes)
            lines.append("")

        if self.script:
            lines.append(CODE_FENCE)
            lines.append(self.script.rstrip("\n"))
            lines.append(CODE_FENCE)

        return "\n".join(lines).rstrip("\n") + "\n"


def find_task(tasks: list[Task], name: str) -> Task:
    """
    Look up a task by exact name.

    Raises:
        KeyError: If no task has that name
    """
    for task in tasks:
        if task.name == name:
            return task
    known = ", ".join(t.name for t in tasks) or "none"
    raise KeyError(f"Task not found: {name}. Known tasks: {known}")
