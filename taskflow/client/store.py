# PURPOSE: explicit state container for the UI.
# Build one TodoStore at the application root and pass it around. Actions
# await the HTTP call, then replace `state` with a new TodoState; selectors
# derive views from the current state without touching the network.

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Any

from .api import TaskflowClient
from .grouping import GROUP_BY_CHOICES, GroupBy, group_tasks
from .grouping import subtask_progress as _progress

TaskDict = dict[str, Any]


@dataclass(frozen=True)
class TodoState:
    tasks: list[TaskDict] = field(default_factory=list)
    categories: list[dict[str, Any]] = field(default_factory=list)
    projects: list[dict[str, Any]] = field(default_factory=list)
    goals: list[dict[str, Any]] = field(default_factory=list)
    user: dict[str, Any] | None = None
    preferences: dict[str, Any] = field(default_factory=dict)
    task_group: GroupBy = "none"


def _summary(task: TaskDict) -> TaskDict:
    keys = ("id", "title", "priority", "dueDate", "completedAt")
    return {k: task.get(k) for k in keys}


class TodoStore:
    def __init__(self, client: TaskflowClient, state: TodoState | None = None):
        self.client = client
        self.state = state or TodoState()

    # --- actions ---

    def load(self, task_limit: int = 200) -> TodoState:
        """Fetch everything the UI needs on start."""
        self.state = TodoState(
            user=self.client.me(),
            tasks=self.client.list_tasks(limit=task_limit),
            categories=self.client.list_categories(),
            projects=self.client.list_projects(),
            goals=self.client.list_goals(),
            preferences=self.client.get_settings(),
            task_group=self.state.task_group,
        )
        return self.state

    def add_task(self, data: dict[str, Any]) -> TaskDict:
        created = self.client.create_task(data)
        tasks = [created, *self.state.tasks]
        if created.get("parentId") is not None:
            tasks = self._sync_parent_summary(tasks, created)
        self.state = replace(self.state, tasks=tasks)
        return created

    def add_from_template(self, template_id: int, **overrides: Any) -> TaskDict:
        created = self.client.task_from_template(template_id, **overrides)
        self.state = replace(self.state, tasks=[created, *self.state.tasks])
        return created

    def update_task(self, task_id: int, changes: dict[str, Any]) -> TaskDict:
        updated = self.client.update_task(task_id, changes)
        self._put_task(updated)
        return updated

    def toggle_task(self, task_id: int) -> TaskDict:
        task = self.get_task(task_id)
        completed_at = None if task.get("completedAt") else datetime.now(UTC).isoformat()
        return self.update_task(task_id, {"completedAt": completed_at})

    def delete_task(self, task_id: int) -> None:
        self.client.delete_task(task_id)
        # the server removed the whole subtree; mirror that locally
        doomed = self._subtree_ids(task_id)
        tasks = []
        for task in self.state.tasks:
            if task["id"] in doomed:
                continue
            subtasks = task.get("subtasks") or []
            if any(sub["id"] in doomed for sub in subtasks):
                task = {**task, "subtasks": [s for s in subtasks if s["id"] not in doomed]}
            tasks.append(task)
        self.state = replace(self.state, tasks=tasks)

    def add_category(self, name: str, color: str | None = None) -> dict[str, Any]:
        created = self.client.create_category(name, color)
        categories = sorted([*self.state.categories, created], key=lambda c: c["name"])
        self.state = replace(self.state, categories=categories)
        return created

    def update_category(self, category_id: int, changes: dict[str, Any]) -> dict[str, Any]:
        updated = self.client.update_category(category_id, changes)
        categories = [updated if c["id"] == category_id else c for c in self.state.categories]
        tasks = [
            {
                **t,
                "categories": [
                    {**c, "name": updated["name"], "color": updated["color"]} if c["id"] == category_id else c
                    for c in t.get("categories") or []
                ],
            }
            for t in self.state.tasks
        ]
        self.state = replace(self.state, categories=categories, tasks=tasks)
        return updated

    def delete_category(self, category_id: int) -> None:
        self.client.delete_category(category_id)
        categories = [c for c in self.state.categories if c["id"] != category_id]
        tasks = [
            {**t, "categories": [c for c in t.get("categories") or [] if c["id"] != category_id]}
            for t in self.state.tasks
        ]
        self.state = replace(self.state, categories=categories, tasks=tasks)

    def set_task_group(self, group_by: GroupBy) -> None:
        if group_by not in GROUP_BY_CHOICES:
            raise ValueError(f"group_by must be one of: {', '.join(GROUP_BY_CHOICES)}")
        self.state = replace(self.state, task_group=group_by)

    def update_preferences(self, changes: dict[str, Any]) -> dict[str, Any]:
        preferences = self.client.update_settings(changes)
        self.state = replace(self.state, preferences=preferences)
        return preferences

    # --- selectors ---

    def get_task(self, task_id: int) -> TaskDict:
        for task in self.state.tasks:
            if task["id"] == task_id:
                return task
        raise KeyError(task_id)

    def grouped_tasks(self, now: datetime | None = None) -> dict[str, list[TaskDict]]:
        """Top-level tasks grouped by the current `task_group`."""
        top_level = [t for t in self.state.tasks if t.get("parentId") is None]
        return group_tasks(top_level, self.state.task_group, now)

    def subtask_progress(self, task_id: int) -> dict[str, float] | None:
        return _progress(self.get_task(task_id))

    # --- helpers ---

    def _put_task(self, updated: TaskDict) -> None:
        tasks = [updated if t["id"] == updated["id"] else t for t in self.state.tasks]
        tasks = self._sync_parent_summary(tasks, updated)
        self.state = replace(self.state, tasks=tasks)

    @staticmethod
    def _sync_parent_summary(tasks: list[TaskDict], child: TaskDict) -> list[TaskDict]:
        """Refresh the child's entry in its parent's `subtasks` list."""
        out = []
        for task in tasks:
            subtasks = task.get("subtasks") or []
            if task["id"] == child.get("parentId"):
                others = [s for s in subtasks if s["id"] != child["id"]]
                merged = [*others, _summary(child)]
                task = {**task, "subtasks": sorted(merged, key=lambda s: s["id"])}
            elif any(s["id"] == child["id"] for s in subtasks):
                # moved away from this parent
                task = {**task, "subtasks": [s for s in subtasks if s["id"] != child["id"]]}
            out.append(task)
        return out

    def _subtree_ids(self, root_id: int) -> set[int]:
        ids = {root_id}
        changed = True
        while changed:
            changed = False
            for task in self.state.tasks:
                if task.get("parentId") in ids and task["id"] not in ids:
                    ids.add(task["id"])
                    changed = True
        return ids
