"""
Entry point for `python -m mdtask` command.

This allows running the CLI as: python -m mdtask <command>
"""

from mdtask.cli import app

if __name__ == "__main__":
    app()
