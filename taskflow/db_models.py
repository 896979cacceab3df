# PURPOSE: define the tables: users and everything they own.
#
# Ownership chains (used for authorization):
#   Task -> user_id, Category -> user_id, Project -> user_id, Goal -> project.user_id
#   TaskTemplate -> user_id, RecurringTask -> user_id

from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base


def now_utc() -> datetime:
    """Return the current UTC time as a naive datetime (the storage convention)."""
    return datetime.now(UTC).replace(tzinfo=None)


def as_utc_naive(value: datetime | None) -> datetime | None:
    """Normalize an incoming datetime to naive UTC; naive input is assumed UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


task_categories = Table(
    "task_categories",
    Base.metadata,
    Column("task_id", ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
)

template_categories = Table(
    "template_categories",
    Base.metadata,
    Column("template_id", ForeignKey("task_templates.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
)


class UserDB(Base):
    __tablename__ = "users"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str | None] = mapped_column(String(191), nullable=True)
    email: Mapped[str] = mapped_column(String(191), unique=True, index=True, nullable=False)
    # NULL for accounts that only ever signed in through OAuth
    password_hash: Mapped[str | None] = mapped_column(String, nullable=True)
    image: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=now_utc)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=now_utc, onupdate=now_utc)

    settings = relationship(
        "UserSettingsDB", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )
    accounts = relationship("AccountDB", back_populates="user", cascade="all, delete-orphan")
    projects = relationship("ProjectDB", back_populates="owner", cascade="all, delete-orphan")
    categories = relationship("CategoryDB", back_populates="owner", cascade="all, delete-orphan")
    tasks = relationship("TaskDB", back_populates="owner", cascade="all, delete-orphan")
    history = relationship("TaskHistoryDB", back_populates="user", cascade="all, delete-orphan")
    templates = relationship(
        "TaskTemplateDB", back_populates="owner", cascade="all, delete-orphan"
    )
    recurring_tasks = relationship(
        "RecurringTaskDB", back_populates="owner", cascade="all, delete-orphan"
    )


class AccountDB(Base):
    __tablename__ = "accounts"
    __table_args__ = (
        UniqueConstraint("provider", "provider_account_id", name="uq_accounts_provider_account"),
    )
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    provider: Mapped[str] = mapped_column(String(64), nullable=False)
    provider_account_id: Mapped[str] = mapped_column(String(191), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=now_utc)

    user = relationship("UserDB", back_populates="accounts")


class UserSettingsDB(Base):
    __tablename__ = "user_settings"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True, index=True, nullable=False
    )
    theme: Mapped[str] = mapped_column(String(16), default="light", nullable=False)
    enable_notifications: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    enable_sound_effects: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    default_pomodoro_time: Mapped[int] = mapped_column(Integer, default=25, nullable=False)
    default_short_break: Mapped[int] = mapped_column(Integer, default=5, nullable=False)
    default_long_break: Mapped[int] = mapped_column(Integer, default=15, nullable=False)
    tasks_per_page: Mapped[int] = mapped_column(Integer, default=10, nullable=False)
    enable_focus_mode: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    enable_emotional_tags: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    preferred_working_hours = Column(JSON, nullable=True)
    notification_settings = Column(JSON, nullable=True)

    user = relationship("UserDB", back_populates="settings")


class ProjectDB(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    color = Column(String(32), nullable=True)
    status = Column(String(16), default="ACTIVE", nullable=False)  # ACTIVE | COMPLETED | ARCHIVED
    due_date = Column(DateTime, nullable=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    created_at = Column(DateTime, default=now_utc)
    updated_at = Column(DateTime, default=now_utc, onupdate=now_utc)

    owner = relationship("UserDB", back_populates="projects")
    goals = relationship(
        "GoalDB", back_populates="project", cascade="all, delete", order_by="GoalDB.created_at"
    )
    # no delete cascade: the API decides whether a project's tasks may go
    tasks = relationship("TaskDB", back_populates="project")

    @property
    def goal_count(self) -> int:
        return len(self.goals)

    @property
    def task_count(self) -> int:
        return len(self.tasks)


class GoalDB(Base):
    __tablename__ = "goals"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(191), nullable=False)
    description = Column(Text, nullable=True)
    project_id = Column(
        Integer, ForeignKey("projects.id", ondelete="CASCADE"), index=True, nullable=False
    )
    created_at = Column(DateTime, default=now_utc)
    updated_at = Column(DateTime, default=now_utc, onupdate=now_utc)

    project = relationship("ProjectDB", back_populates="goals")
    tasks = relationship("TaskDB", back_populates="goal", order_by="TaskDB.id")

    @property
    def project_name(self) -> str:
        return self.project.name


class CategoryDB(Base):
    __tablename__ = "categories"
    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_categories_user_id_name"),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(30), nullable=False)
    color = Column(String(32), default="#3b82f6", nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    created_at = Column(DateTime, default=now_utc)
    updated_at = Column(DateTime, default=now_utc, onupdate=now_utc)

    owner = relationship("UserDB", back_populates="categories")
    tasks = relationship("TaskDB", secondary=task_categories, back_populates="categories")
    templates = relationship(
        "TaskTemplateDB", secondary=template_categories, back_populates="categories"
    )

    @property
    def task_count(self) -> int:
        return len(self.tasks)


class TaskDB(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    priority = Column(String(16), default="NONE", nullable=False)  # NONE < LOW < MEDIUM < HIGH < URGENT
    emotion = Column(String(16), nullable=True)
    due_date = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    estimated_duration = Column(Integer, nullable=True)  # minutes
    actual_duration = Column(Integer, nullable=True)  # minutes
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    goal_id = Column(Integer, ForeignKey("goals.id", ondelete="SET NULL"), nullable=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="SET NULL"), nullable=True)
    parent_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=True)
    recurring_task_id = Column(
        Integer, ForeignKey("recurring_tasks.id", ondelete="SET NULL"), nullable=True
    )
    created_at = Column(DateTime, default=now_utc)
    updated_at = Column(DateTime, default=now_utc, onupdate=now_utc)

    owner = relationship("UserDB", back_populates="tasks")
    goal = relationship("GoalDB", back_populates="tasks")
    project = relationship("ProjectDB", back_populates="tasks")
    parent = relationship("TaskDB", remote_side=[id], back_populates="subtasks")
    # "delete" without delete-orphan: promoting a subtask to top level must not drop it
    subtasks = relationship(
        "TaskDB", back_populates="parent", cascade="all, delete", order_by="TaskDB.id"
    )
    categories = relationship(
        "CategoryDB", secondary=task_categories, back_populates="tasks", order_by="CategoryDB.name"
    )
    history = relationship("TaskHistoryDB", back_populates="task")
    recurring_task = relationship("RecurringTaskDB", back_populates="tasks")


class TaskTemplateDB(Base):
    __tablename__ = "task_templates"
    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_task_templates_user_id_name"),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(191), nullable=False)
    description = Column(Text, nullable=True)
    priority = Column(String(16), default="NONE", nullable=False)
    emotion = Column(String(16), nullable=True)
    estimated_duration = Column(Integer, nullable=True)  # minutes
    is_recurring = Column(Boolean, default=False, nullable=False)
    # suggested rule for scheduling: {"frequency", "interval", "daysOfWeek", "dayOfMonth"}
    recurrence = Column(JSON, nullable=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=now_utc)
    updated_at = Column(DateTime, default=now_utc, onupdate=now_utc)

    owner = relationship("UserDB", back_populates="templates")
    categories = relationship(
        "CategoryDB",
        secondary=template_categories,
        back_populates="templates",
        order_by="CategoryDB.name",
    )
    schedules = relationship(
        "RecurringTaskDB", back_populates="template", cascade="all, delete-orphan"
    )

    @property
    def category_ids(self) -> list[int]:
        return [c.id for c in self.categories]


class RecurringTaskDB(Base):
    """A schedule that turns a template into a new task every time it comes due."""

    __tablename__ = "recurring_tasks"
    __table_args__ = (
        UniqueConstraint("user_id", "template_id", name="uq_recurring_tasks_user_id_template_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    template_id = Column(
        Integer, ForeignKey("task_templates.id", ondelete="CASCADE"), nullable=False
    )
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    next_due_date = Column(DateTime, nullable=False)
    # DAILY | WEEKLY | MONTHLY | YEARLY | CUSTOM
    frequency = Column(String(16), default="DAILY", nullable=False)
    interval = Column(Integer, default=1, nullable=False)
    days_of_week = Column(JSON, nullable=True)  # [0..6], Sunday = 0
    day_of_month = Column(Integer, nullable=True)
    month_of_year = Column(Integer, nullable=True)
    start_date = Column(DateTime, default=now_utc, nullable=False)
    end_date = Column(DateTime, nullable=True)
    count = Column(Integer, nullable=True)  # stop after this many generated tasks
    generated_count = Column(Integer, default=0, nullable=False)
    last_generated_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=now_utc)
    updated_at = Column(DateTime, default=now_utc, onupdate=now_utc)

    owner = relationship("UserDB", back_populates="recurring_tasks")
    template = relationship("TaskTemplateDB", back_populates="schedules")
    tasks = relationship("TaskDB", back_populates="recurring_task")


class VerificationTokenDB(Base):
    __tablename__ = "verification_tokens"
    __table_args__ = (
        UniqueConstraint("identifier", "token", name="uq_verification_tokens_identifier_token"),
    )

    token: Mapped[str] = mapped_column(String(191), primary_key=True)
    identifier: Mapped[str] = mapped_column(String(191), index=True, nullable=False)  # email
    expires: Mapped[datetime] = mapped_column(DateTime, nullable=False)


class TaskHistoryDB(Base):
    __tablename__ = "task_history"

    id = Column(Integer, primary_key=True)
    # survives task deletion so DELETED entries stay visible in activity
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    task_title = Column(String(255), nullable=False)
    change_type = Column(String(16), nullable=False)  # CREATED | UPDATED | COMPLETED | DELETED
    change_data = Column(JSON, nullable=False)
    previous_data = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=now_utc, nullable=False)

    task = relationship("TaskDB", back_populates="history")
    user = relationship("UserDB", back_populates="history")


# Helpful indexes for filtering/sorting
Index("ix_tasks_user_id", TaskDB.user_id)
Index("ix_tasks_goal_id", TaskDB.goal_id)
Index("ix_tasks_project_id", TaskDB.project_id)
Index("ix_tasks_parent_id", TaskDB.parent_id)
Index("ix_tasks_due_date", TaskDB.due_date)
Index("ix_task_history_task_id_created_at", TaskHistoryDB.task_id, TaskHistoryDB.created_at)
Index("ix_task_history_user_id", TaskHistoryDB.user_id)
Index("ix_task_templates_user_id", TaskTemplateDB.user_id)
Index("ix_recurring_tasks_user_id", RecurringTaskDB.user_id)
Index("ix_recurring_tasks_next_due_date", RecurringTaskDB.next_due_date)
Index("ix_tasks_recurring_task_id", TaskDB.recurring_task_id)
