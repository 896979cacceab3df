from fastapi import APIRouter

from ...routers import auth as auth_router
from ...routers import categories as categories_router
from ...routers import goals as goals_router
from ...routers import projects as projects_router
from ...routers import recurring_tasks as recurring_tasks_router
from ...routers import tasks as tasks_router
from ...routers import templates as templates_router
from ...routers import user as user_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(auth_router.router)
api_router.include_router(projects_router.router)
api_router.include_router(goals_router.router)
api_router.include_router(tasks_router.router)
api_router.include_router(categories_router.router)
api_router.include_router(templates_router.router)
api_router.include_router(recurring_tasks_router.router)
api_router.include_router(user_router.router)


@api_router.get("/", tags=["meta"])  # lightweight meta endpoint
def api_info():
    return {
        "name": "Taskflow API",
        "version": "v1",
        "docs": "/docs",
        "auth": {
            "signup": "/api/v1/auth/signup",
            "login": "/api/v1/auth/login",
            "me": "/api/v1/auth/me",
            "forgotPassword": "/api/v1/auth/forgot-password",
            "resetPassword": "/api/v1/auth/reset-password",
        },
        "projects": "/api/v1/projects",
        "goals": "/api/v1/goals",
        "tasks": "/api/v1/tasks",
        "categories": "/api/v1/categories",
        "templates": "/api/v1/templates",
        "recurringTasks": "/api/v1/recurring-tasks",
        "user": "/api/v1/user",
    }
