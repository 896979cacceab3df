# Client-side state and derived views over the JSON API

from .api import ApiClientError, TaskflowClient
from .grouping import group_tasks, subtask_progress
from .store import TodoState, TodoStore

__all__ = [
    "ApiClientError",
    "TaskflowClient",
    "TodoState",
    "TodoStore",
    "group_tasks",
    "subtask_progress",
]
