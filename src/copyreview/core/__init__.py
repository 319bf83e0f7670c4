"""Pipeline orchestration."""

from .outcome import TaskFailure, TaskOutcome, TaskSuccess
from .pipeline import CopyPipeline

__all__ = ["CopyPipeline", "TaskSuccess", "TaskFailure", "TaskOutcome"]
