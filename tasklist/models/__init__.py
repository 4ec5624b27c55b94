from .task import (
    ErrorResponse,
    Task,
    TaskCreateRequest,
    TaskListResponse,
    TaskUpdateRequest,
    format_timestamp,
    utc_now,
)

__all__ = [
    "ErrorResponse",
    "Task",
    "TaskCreateRequest",
    "TaskListResponse",
    "TaskUpdateRequest",
    "format_timestamp",
    "utc_now",
]
