"""Revendor decision and execution.

- ChangeDetector decides whether a commit touched go.mod or go.sum
- RevendorWorkflow regenerates the vendor directory and pushes any change
"""

from revendorbot.revendor.detector import MANIFEST_FILES, ChangeDetector
from revendorbot.revendor.workflow import (
    COMMIT_MESSAGE,
    RevendorError,
    RevendorOutcome,
    RevendorStatus,
    RevendorWorkflow,
)

__all__ = [
    "COMMIT_MESSAGE",
    "ChangeDetector",
    "MANIFEST_FILES",
    "RevendorError",
    "RevendorOutcome",
    "RevendorStatus",
    "RevendorWorkflow",
]
