# PURPOSE: request/response schemas (pydantic v2).
# - JSON is camelCase on the wire; snake_case input is accepted as well.
# - Relation ids may come as `taskIds: [1, 2]` or `tasks: [{"id": 1}, ...]`
#   (same for categories).

from datetime import UTC, datetime
from typing import Annotated, Any, ClassVar, Literal

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from .db_models import as_utc_naive

Priority = Literal["NONE", "LOW", "MEDIUM", "HIGH", "URGENT"]
Emotion = Literal["EXCITED", "NEUTRAL", "ANXIOUS", "OVERWHELMED", "CONFIDENT"]
ProjectStatus = Literal["ACTIVE", "COMPLETED", "ARCHIVED"]
Theme = Literal["light", "dark", "system"]
ChangeType = Literal["CREATED", "UPDATED", "COMPLETED", "DELETED"]
# (camelKey, snake_key, objectListKey) triples for relation id lists
RelationFields = tuple[tuple[str, str, str], ...]

# Ordinal order of priorities, lowest first
PRIORITY_ORDER: tuple[str, ...] = ("NONE", "LOW", "MEDIUM", "HIGH", "URGENT")


def _assume_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value


# Incoming datetimes are normalized to naive UTC (storage convention);
# outgoing ones are tagged as UTC so clients never guess.
InDateTime = Annotated[datetime, AfterValidator(as_utc_naive)]
OutDateTime = Annotated[datetime, AfterValidator(_assume_utc)]


def extract_relation_ids(value: Any) -> Any:
    """Turn `[1, {"id": 2}]` into `[1, 2]`; anything else is left for field validation."""
    if isinstance(value, list):
        return [item.get("id") if isinstance(item, dict) else item for item in value]
    return value


def _coerce_priority(value: Any) -> Any:
    # The UI sends the ordinal (0..4) from its selector; accept names in any case too.
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and 0 <= value < len(PRIORITY_ORDER):
        return PRIORITY_ORDER[value]
    if isinstance(value, str):
        return value.upper()
    return value


def _coerce_emotion(value: Any) -> Any:
    if isinstance(value, str):
        return value.upper()
    return value


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class OrmModel(ApiModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


class _RelationIdsMixin(ApiModel):
    """Map the object-list spelling of a relation onto its id-list field."""

    relation_fields: ClassVar[RelationFields] = ()

    @model_validator(mode="before")
    @classmethod
    def _merge_relation_objects(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        for camel, snake, objects_key in cls.relation_fields:
            if camel in data or snake in data or objects_key not in data:
                continue
            data = {**data, camel: extract_relation_ids(data[objects_key])}
        return data


# --- Projects ---------------------------------------------------------------


class ProjectCreate(ApiModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = None
    color: str | None = Field(default=None, max_length=32)
    status: ProjectStatus = "ACTIVE"
    due_date: InDateTime | None = None
    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"name": "Home renovation", "status": "ACTIVE"},
                {"name": "Thesis", "dueDate": "2026-06-30T17:00:00Z", "color": "#8E44AD"},
            ]
        },
    )


# PUT replaces every field; omitted optionals are reset to their defaults
ProjectPut = ProjectCreate


class ProjectUpdate(ApiModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = None
    color: str | None = Field(default=None, max_length=32)
    status: ProjectStatus | None = None
    due_date: InDateTime | None = None


# --- Goals ------------------------------------------------------------------


class GoalCreate(_RelationIdsMixin):
    relation_fields: ClassVar[RelationFields] = (("taskIds", "task_ids", "tasks"),)

    name: str = Field(min_length=1, max_length=191)
    description: str | None = None
    project_id: int
    task_ids: list[int] = Field(default_factory=list)
    model_config = ConfigDict(
        json_schema_extra={
            "examples": [{"name": "Ship MVP", "projectId": 1, "taskIds": [3, 4]}]
        },
    )


# PUT: an omitted taskIds clears the goal's tasks
GoalPut = GoalCreate


class GoalUpdate(_RelationIdsMixin):
    relation_fields: ClassVar[RelationFields] = (("taskIds", "task_ids", "tasks"),)

    name: str | None = Field(default=None, min_length=1, max_length=191)
    description: str | None = None
    project_id: int | None = None
    task_ids: list[int] | None = None


# --- Tasks ------------------------------------------------------------------


class _TaskFields(_RelationIdsMixin):
    relation_fields: ClassVar[RelationFields] = (("categoryIds", "category_ids", "categories"),)

    @field_validator("priority", mode="before", check_fields=False)
    @classmethod
    def _priority(cls, value: Any) -> Any:
        return _coerce_priority(value)

    @field_validator("emotion", mode="before", check_fields=False)
    @classmethod
    def _emotion(cls, value: Any) -> Any:
        return _coerce_emotion(value)


class TaskCreate(_TaskFields):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=1000)
    priority: Priority = "NONE"
    emotion: Emotion | None = None
    due_date: InDateTime | None = None
    completed_at: InDateTime | None = None
    estimated_duration: int | None = Field(default=None, ge=0, le=1440)
    actual_duration: int | None = Field(default=None, ge=0, le=1440)
    goal_id: int | None = None
    project_id: int | None = None
    parent_id: int | None = None
    category_ids: list[int] = Field(default_factory=list, max_length=5)
    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"title": "Buy milk", "priority": "LOW"},
                {
                    "title": "Write report",
                    "priority": "HIGH",
                    "emotion": "ANXIOUS",
                    "dueDate": "2026-12-31T18:00:00Z",
                    "categoryIds": [1],
                },
            ]
        },
    )


# PUT: full replace, including the category set
TaskPut = TaskCreate


class TaskUpdate(_TaskFields):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=1000)
    priority: Priority | None = None
    emotion: Emotion | None = None
    due_date: InDateTime | None = None
    completed_at: InDateTime | None = None
    estimated_duration: int | None = Field(default=None, ge=0, le=1440)
    actual_duration: int | None = Field(default=None, ge=0, le=1440)
    goal_id: int | None = None
    project_id: int | None = None
    parent_id: int | None = None
    category_ids: list[int] | None = Field(default=None, max_length=5)
    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"completedAt": "2026-10-18T09:00:00Z"},
                {"priority": "URGENT"},
                {"categoryIds": []},
            ]
        },
    )


class TaskIdList(ApiModel):
    """Helper schema for bulk operations with ids."""

    ids: list[int] = Field(min_length=1)


# --- Categories -------------------------------------------------------------


class CategoryCreate(ApiModel):
    name: str = Field(min_length=1, max_length=30)
    color: str = Field(default="#3b82f6", min_length=1, max_length=32)


CategoryPut = CategoryCreate


class CategoryUpdate(ApiModel):
    name: str | None = Field(default=None, min_length=1, max_length=30)
    color: str | None = Field(default=None, min_length=1, max_length=32)


# --- Templates and recurring schedules --------------------------------------

Frequency = Literal["DAILY", "WEEKLY", "MONTHLY", "YEARLY", "CUSTOM"]
WeekDay = Annotated[int, Field(ge=0, le=6)]


class _RuleFields(ApiModel):
    """Frequency accepts any case (`weekly` and `WEEKLY` alike)."""

    @field_validator("frequency", mode="before", check_fields=False)
    @classmethod
    def _frequency(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.upper()
        return value


class RecurrenceRule(_RuleFields):
    frequency: Frequency = "DAILY"
    interval: int = Field(default=1, ge=1, le=365)
    days_of_week: list[WeekDay] | None = Field(default=None, max_length=7)
    day_of_month: int | None = Field(default=None, ge=1, le=31)
    month_of_year: int | None = Field(default=None, ge=1, le=12)


class TemplateCreate(_TaskFields):
    name: str = Field(min_length=1, max_length=191)
    description: str | None = Field(default=None, max_length=1000)
    priority: Priority = "NONE"
    emotion: Emotion | None = None
    estimated_duration: int | None = Field(default=None, ge=0, le=1440)
    category_ids: list[int] = Field(default_factory=list, max_length=5)
    is_recurring: bool = False
    recurrence: RecurrenceRule | None = None
    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "name": "Weekly Review",
                    "priority": "HIGH",
                    "estimatedDuration": 30,
                    "isRecurring": True,
                    "recurrence": {"frequency": "weekly", "interval": 1, "daysOfWeek": [5]},
                }
            ]
        },
    )


# PUT: full replace, including the category set
TemplatePut = TemplateCreate


class TemplateUpdate(_TaskFields):
    name: str | None = Field(default=None, min_length=1, max_length=191)
    description: str | None = Field(default=None, max_length=1000)
    priority: Priority | None = None
    emotion: Emotion | None = None
    estimated_duration: int | None = Field(default=None, ge=0, le=1440)
    category_ids: list[int] | None = Field(default=None, max_length=5)
    is_recurring: bool | None = None
    recurrence: RecurrenceRule | None = None


class TemplateInstantiate(ApiModel):
    """Optional overrides when turning a template into a task."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    due_date: InDateTime | None = None
    project_id: int | None = None
    goal_id: int | None = None
    parent_id: int | None = None


class RecurringTaskCreate(RecurrenceRule):
    template_id: int
    next_due_date: InDateTime | None = None  # defaults to startDate
    start_date: InDateTime | None = None  # defaults to now
    end_date: InDateTime | None = None
    count: int | None = Field(default=None, ge=1)
    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"templateId": 1, "frequency": "WEEKLY", "daysOfWeek": [1, 3]},
                {"templateId": 2, "frequency": "MONTHLY", "dayOfMonth": 31, "count": 12},
            ]
        },
    )


RecurringTaskPut = RecurringTaskCreate


class RecurringTaskUpdate(_RuleFields):
    template_id: int | None = None
    frequency: Frequency | None = None
    interval: int | None = Field(default=None, ge=1, le=365)
    days_of_week: list[WeekDay] | None = Field(default=None, max_length=7)
    day_of_month: int | None = Field(default=None, ge=1, le=31)
    month_of_year: int | None = Field(default=None, ge=1, le=12)
    next_due_date: InDateTime | None = None
    start_date: InDateTime | None = None
    end_date: InDateTime | None = None
    count: int | None = Field(default=None, ge=1)


class PreviewRequest(RecurrenceRule):
    start_date: InDateTime
    end_date: InDateTime | None = None
    count: int = Field(default=5, ge=1, le=100)


class GenerateRequest(ApiModel):
    """Schedules to run now; without ids every schedule that is due runs."""

    ids: list[int] | None = None


# --- User / Auth ------------------------------------------------------------


class SignupRequest(ApiModel):
    name: str | None = Field(default=None, max_length=191)
    email: EmailStr
    password: str = Field(min_length=8)


class ForgotPasswordRequest(ApiModel):
    email: EmailStr


class ResetPasswordRequest(ApiModel):
    token: str = Field(min_length=1)
    password: str = Field(min_length=8)


class ChangePasswordRequest(ApiModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=8)


class ProfileUpdate(ApiModel):
    name: str | None = Field(default=None, max_length=191)
    email: EmailStr | None = None


class OAuthProfile(ApiModel):
    """Profile already verified by the OAuth provider integration."""

    provider_account_id: str = Field(min_length=1)
    email: EmailStr
    name: str | None = None
    image: str | None = None


class SettingsPut(ApiModel):
    theme: Theme = "light"
    enable_notifications: bool = True
    enable_sound_effects: bool = True
    default_pomodoro_time: int = Field(default=25, ge=1, le=240)
    default_short_break: int = Field(default=5, ge=1, le=60)
    default_long_break: int = Field(default=15, ge=1, le=120)
    tasks_per_page: int = Field(default=10, ge=1, le=100)
    enable_focus_mode: bool = False
    enable_emotional_tags: bool = True
    preferred_working_hours: dict[str, Any] | None = None
    notification_settings: dict[str, Any] | None = None


class SettingsUpdate(ApiModel):
    theme: Theme | None = None
    enable_notifications: bool | None = None
    enable_sound_effects: bool | None = None
    default_pomodoro_time: int | None = Field(default=None, ge=1, le=240)
    default_short_break: int | None = Field(default=None, ge=1, le=60)
    default_long_break: int | None = Field(default=None, ge=1, le=120)
    tasks_per_page: int | None = Field(default=None, ge=1, le=100)
    enable_focus_mode: bool | None = None
    enable_emotional_tags: bool | None = None
    preferred_working_hours: dict[str, Any] | None = None
    notification_settings: dict[str, Any] | None = None


class UserPublic(OrmModel):
    id: int
    email: str
    name: str | None = None
    image: str | None = None


class TokenResponse(BaseModel):
    # OAuth2 wire format stays snake_case
    access_token: str
    token_type: Literal["bearer"] = "bearer"
    model_config = ConfigDict(
        json_schema_extra={"examples": [{"access_token": "<jwt>", "token_type": "bearer"}]}
    )


# --- Responses --------------------------------------------------------------


class CategoryOut(OrmModel):
    id: int
    name: str
    color: str
    created_at: OutDateTime
    updated_at: OutDateTime


class CategoryWithCount(CategoryOut):
    task_count: int


class TaskSummary(OrmModel):
    id: int
    title: str
    priority: Priority
    due_date: OutDateTime | None
    completed_at: OutDateTime | None


class TaskOut(OrmModel):
    id: int
    title: str
    description: str | None
    priority: Priority
    emotion: Emotion | None
    due_date: OutDateTime | None
    completed_at: OutDateTime | None
    estimated_duration: int | None
    actual_duration: int | None
    goal_id: int | None
    project_id: int | None
    parent_id: int | None
    recurring_task_id: int | None = None
    categories: list[CategoryOut]
    subtasks: list[TaskSummary]
    created_at: OutDateTime
    updated_at: OutDateTime


class GoalSummary(OrmModel):
    id: int
    name: str


class GoalOut(OrmModel):
    id: int
    name: str
    description: str | None
    project_id: int
    project_name: str
    tasks: list[TaskSummary]
    created_at: OutDateTime
    updated_at: OutDateTime


class ProjectOut(OrmModel):
    id: int
    name: str
    description: str | None
    color: str | None
    status: ProjectStatus
    due_date: OutDateTime | None
    goal_count: int
    task_count: int
    created_at: OutDateTime
    updated_at: OutDateTime


class ProjectDetail(ProjectOut):
    goals: list[GoalSummary]
    tasks: list[TaskOut]


class SettingsOut(OrmModel):
    theme: Theme
    enable_notifications: bool
    enable_sound_effects: bool
    default_pomodoro_time: int
    default_short_break: int
    default_long_break: int
    tasks_per_page: int
    enable_focus_mode: bool
    enable_emotional_tags: bool
    preferred_working_hours: dict[str, Any] | None
    notification_settings: dict[str, Any] | None


class HistoryEntry(OrmModel):
    id: int
    task_id: int | None
    change_type: ChangeType
    change_data: dict[str, Any]
    previous_data: dict[str, Any] | None
    created_at: OutDateTime


class ActivityStats(ApiModel):
    total_tasks: int
    completed_tasks: int
    overdue_tasks: int
    tasks_due_today: int
    completion_rate: int


class ActivityEntry(ApiModel):
    id: int
    task_id: int | None
    task_title: str
    change_type: ChangeType
    timestamp: OutDateTime
    changes: dict[str, Any]


class ActivitySummary(ApiModel):
    total_changes: int
    summary_by_day: dict[str, dict[str, int]]
    recent_activity: list[ActivityEntry]


class ActivityResponse(ApiModel):
    activity: ActivitySummary
    stats: ActivityStats


class TemplateOut(OrmModel):
    id: int
    name: str
    description: str | None
    priority: Priority
    emotion: Emotion | None
    estimated_duration: int | None
    is_recurring: bool
    recurrence: RecurrenceRule | None
    category_ids: list[int]
    categories: list[CategoryOut]
    created_at: OutDateTime
    updated_at: OutDateTime


class TemplateSummary(OrmModel):
    id: int
    name: str
    priority: Priority


class RecurringTaskOut(OrmModel):
    id: int
    template_id: int
    template: TemplateSummary
    next_due_date: OutDateTime
    frequency: Frequency
    interval: int
    days_of_week: list[int] | None
    day_of_month: int | None
    month_of_year: int | None
    start_date: OutDateTime
    end_date: OutDateTime | None
    count: int | None
    generated_count: int
    last_generated_date: OutDateTime | None
    created_at: OutDateTime
    updated_at: OutDateTime
    # only with ?preview=true
    preview_occurrences: list[OutDateTime] | None = None


class PreviewOut(ApiModel):
    occurrences: list[OutDateTime]


class GenerateResult(ApiModel):
    generated_tasks: list[TaskOut]
    count: int
    message: str


class MessageOut(ApiModel):
    message: str


class ProjectDeleted(MessageOut):
    tasks_deleted: int


class BulkDeleted(ApiModel):
    deleted: int


class BulkCompleted(ApiModel):
    updated: int


class OAuthSession(ApiModel):
    user: UserPublic
    access_token: str
    token_type: Literal["bearer"] = "bearer"
    is_new_user: bool


# --- Envelope payloads ------------------------------------------------------
# `data` always names what it carries: {"data": {"task": {...}}, "success": true}


class ProjectData(ApiModel):
    project: ProjectDetail


class ProjectList(ApiModel):
    projects: list[ProjectOut]


class GoalData(ApiModel):
    goal: GoalOut


class GoalList(ApiModel):
    goals: list[GoalOut]


class TaskData(ApiModel):
    task: TaskOut


class TaskList(ApiModel):
    tasks: list[TaskOut]


class HistoryList(ApiModel):
    history: list[HistoryEntry]


class CategoryData(ApiModel):
    category: CategoryWithCount


class CategoryList(ApiModel):
    categories: list[CategoryWithCount]


class UserData(ApiModel):
    user: UserPublic


class SettingsData(ApiModel):
    settings: SettingsOut


class TemplateData(ApiModel):
    template: TemplateOut


class TemplateList(ApiModel):
    templates: list[TemplateOut]


class RecurringTaskData(ApiModel):
    recurring_task: RecurringTaskOut


class RecurringTaskList(ApiModel):
    recurring_tasks: list[RecurringTaskOut]
