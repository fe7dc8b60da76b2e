"""Workspace provisioning for revendor runs.

Each run gets its own temporary directory containing a fresh clone of the
repository at the requested ref. The directory is removed when the run
finishes, whatever the outcome.
"""

from revendorbot.provisioner.workspace import (
    Workspace,
    WorkspaceError,
    WorkspaceManager,
    strip_branch_prefix,
)

__all__ = ["Workspace", "WorkspaceError", "WorkspaceManager", "strip_branch_prefix"]
