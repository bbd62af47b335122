"""TickTick API clients."""

from ticktick_oauth.clients.task_client import TaskClient, build_task_title

__all__ = [
    "TaskClient",
    "build_task_title",
]
