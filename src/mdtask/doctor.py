"""
Doctor command: static checks over a task catalogue.

Checks:
- Task file exists and parses
- Task names are unique
- Every dependency names a known task
- No task depends on itself
"""

from collections import Counter
from pathlib import Path

from mdtask.errors import TaskFileError, TaskParseError
from mdtask.loader import load_tasks
from mdtask.models import Task


def check_unique_names(tasks: list[Task]) -> tuple[bool, str]:
    """
    Check that no two tasks share a name.

    Returns:
        (success, message) tuple
    """
    counts = Counter(task.name for task in tasks)
    dupes = sorted(name for name, count in counts.items() if count > 1)
    if dupes:
        return False, f"Duplicate task names: {', '.join(dupes)}"
    return True, f"{len(tasks)} unique task name(s)"


def check_known_dependencies(tasks: list[Task]) -> tuple[bool, str]:
    """
    Check that every dependency refers to a task in the catalogue.

    Returns:
        (success, message) tuple
    """
    names = {task.name for task in tasks}
    missing = [
        f"{task.name} -> {dep}"
        for task in tasks
        for dep in task.depends_on
        if dep not in names
    ]
    if missing:
        return False, f"Unknown dependencies: {', '.join(missing)}"
    return True, "All dependencies are defined"


def check_self_dependencies(tasks: list[Task]) -> tuple[bool, str]:
    """
    Check that no task lists itself as a dependency.

    Returns:
        (success, message) tuple
    """
    offenders = [task.name for task in tasks if task.name in task.depends_on]
    if offenders:
        return False, f"Tasks depending on themselves: {', '.join(offenders)}"
    return True, "No self-dependencies"


def run_checks(tasks: list[Task]) -> list[tuple[str, bool, str]]:
    """Run every catalogue check and return (name, success, message) tuples."""
    checks = [
        ("Task names", check_unique_names),
        ("Dependencies", check_known_dependencies),
        ("Self-dependencies", check_self_dependencies),
    ]
    results = []
    for name, check_func in checks:
        success, message = check_func(tasks)
        results.append((name, success, message))
    return results


def check_all(path: Path, heading: str = "Tasks") -> int:
    """
    Load the catalogue, run all checks and print results.

    Returns:
        Exit code: 0 if all pass, 1 if any fail
    """
    print(f"Checking {path}...\n")

    try:
        tasks = load_tasks(path, heading)
    except (FileNotFoundError, TaskFileError, TaskParseError) as e:
        print(f"✗ Task file: {e}")
        print()
        print("Some checks failed. Please fix the issues above.")
        return 1

    print(f"✓ Task file: parsed {len(tasks)} task(s)")
    all_passed = True

    for name, success, message in run_checks(tasks):
        status = "✓" if success else "✗"
        print(f"{status} {name}: {message}")
        if not success:
            all_passed = False

    print()
    if all_passed:
        print("All checks passed!")
        return 0
    else:
        print("Some checks failed. Please fix the issues above.")
        return 1
