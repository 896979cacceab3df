# PURPOSE: thin httpx wrapper over /api/v1.
# - Sends the bearer token, unwraps {data: {<key>: ...}, success}, raises ApiClientError
#   for {error, success: false} (and any non-2xx status).
# - Accepts an existing httpx.Client (e.g. FastAPI's TestClient).

from typing import Any

import httpx

API_PREFIX = "/api/v1"


class ApiClientError(Exception):
    def __init__(self, status_code: int, message: str, errors: dict[str, list[str]] | None = None):
        self.status_code = status_code
        self.message = message
        self.errors = errors or {}
        super().__init__(f"{status_code}: {message}")


class TaskflowClient:
    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        *,
        token: str | None = None,
        http: httpx.Client | None = None,
        timeout: float = 10.0,
    ):
        self._owns_http = http is None
        self._http = http or httpx.Client(base_url=base_url, timeout=timeout)
        self.token = token

    # --- plumbing ---

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "TaskflowClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    def _request(self, method: str, path: str, key: str | None = None, **kwargs: Any) -> Any:
        response = self._http.request(method, API_PREFIX + path, headers=self._headers(), **kwargs)
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if response.is_error or (isinstance(payload, dict) and payload.get("success") is False):
            body = payload if isinstance(payload, dict) else {}
            raise ApiClientError(
                response.status_code,
                body.get("error") or response.reason_phrase,
                body.get("errors"),
            )
        if isinstance(payload, dict) and "data" in payload:
            data = payload["data"]
            return data[key] if key is not None else data
        return payload

    # --- auth ---

    def signup(self, email: str, password: str, name: str | None = None) -> dict[str, Any]:
        body = {"email": email, "password": password, "name": name}
        return self._request("POST", "/auth/signup", "user", json=body)

    def login(self, email: str, password: str) -> str:
        data = self._request("POST", "/auth/login", data={"username": email, "password": password})
        self.token = data["access_token"]
        return self.token

    def me(self) -> dict[str, Any]:
        return self._request("GET", "/auth/me", "user")

    # --- tasks ---

    def list_tasks(self, **params: Any) -> list[dict[str, Any]]:
        query = {k: v for k, v in params.items() if v is not None}
        return self._request("GET", "/tasks", "tasks", params=query)

    def create_task(self, data: dict[str, Any]) -> dict[str, Any]:
        return self._request("POST", "/tasks", "task", json=data)

    def update_task(self, task_id: int, changes: dict[str, Any]) -> dict[str, Any]:
        return self._request("PATCH", f"/tasks/{task_id}", "task", json=changes)

    def delete_task(self, task_id: int) -> None:
        self._request("DELETE", f"/tasks/{task_id}")

    # --- categories ---

    def list_categories(self) -> list[dict[str, Any]]:
        return self._request("GET", "/categories", "categories")

    def create_category(self, name: str, color: str | None = None) -> dict[str, Any]:
        body = {"name": name} if color is None else {"name": name, "color": color}
        return self._request("POST", "/categories", "category", json=body)

    def update_category(self, category_id: int, changes: dict[str, Any]) -> dict[str, Any]:
        return self._request("PATCH", f"/categories/{category_id}", "category", json=changes)

    def delete_category(self, category_id: int) -> None:
        self._request("DELETE", f"/categories/{category_id}")

    # --- projects / goals ---

    def list_projects(self) -> list[dict[str, Any]]:
        return self._request("GET", "/projects", "projects")

    def list_goals(self, project_id: int | None = None) -> list[dict[str, Any]]:
        params = {"projectId": project_id} if project_id is not None else None
        return self._request("GET", "/goals", "goals", params=params)

    # --- templates / recurring ---

    def list_templates(self) -> list[dict[str, Any]]:
        return self._request("GET", "/templates", "templates")

    def task_from_template(self, template_id: int, **overrides: Any) -> dict[str, Any]:
        return self._request("POST", f"/templates/{template_id}/tasks", "task", json=overrides)

    def generate_recurring(self, ids: list[int] | None = None) -> list[dict[str, Any]]:
        body = {"ids": ids} if ids is not None else {}
        return self._request("POST", "/recurring-tasks/generate", "generatedTasks", json=body)

    # --- user ---

    def get_settings(self) -> dict[str, Any]:
        return self._request("GET", "/user/settings", "settings")

    def update_settings(self, changes: dict[str, Any]) -> dict[str, Any]:
        return self._request("PATCH", "/user/settings", "settings", json=changes)

    def activity(self, days: int = 7) -> dict[str, Any]:
        return self._request("GET", "/user/activity", params={"days": days})
