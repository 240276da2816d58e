from afrispeak_tasks.store.base import TaskStore
from afrispeak_tasks.store.memory import InMemoryTaskStore

__all__ = ["TaskStore", "InMemoryTaskStore"]
