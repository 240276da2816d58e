from afrispeak_tasks.db.models import Base, TaskRecord

__all__ = ["Base", "TaskRecord"]
