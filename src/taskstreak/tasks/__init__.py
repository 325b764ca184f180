"""
Task subsystem.

Components:
- task_models.py: data structures, commands and JSON (de)serialisation
- task_store.py: the task store (commands, snapshots, persistence)
- stats.py / streak.py: pure engines recomputed on every commit
- reminder_scheduler.py: per-task reminder timers, resynced on every snapshot
- drafts.py: TaskDraft helpers (due date combination, transcript parser)
- queries.py: read-only views (filters, sorting, day progress, export)
"""
