# PURPOSE: the success half of the envelope. Handlers return
# `envelope({"task": row})` and declare `response_model=Envelope[TaskData]`;
# `data` always names the resource it carries. FastAPI validates ORM rows
# against the schema (from_attributes) and serializes camelCase aliases.

from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    data: T
    success: Literal[True] = True


def envelope(data: dict[str, Any]) -> dict[str, Any]:
    return {"data": data, "success": True}
