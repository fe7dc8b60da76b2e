"""External command runner.

This module manages git and go execution:
- Subprocess invocation inside a workspace directory
- Deadline enforcement and kill-on-cancel
- stdout/stderr capture
- Exit code handling for success/failure determination
"""

from revendorbot.runner.command import CommandError, CommandResult, CommandRunner

__all__ = ["CommandError", "CommandResult", "CommandRunner"]
