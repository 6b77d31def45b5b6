"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskStatus, Priority, NotificationRecord)
- task_store.py: SQLite-backed storage for tasks, notification records and reminders
- reminder_scheduler.py: polling loop that turns upcoming deadlines into notification records
"""
