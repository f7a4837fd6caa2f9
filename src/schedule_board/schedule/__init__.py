"""
Schedule subsystem.

Components:
- models.py: data structures (ScheduleTask, SubTask, TaskStatus, WorkLocation)
- derive.py: pure derivations (aggregate status, progress, legacy migration, sanitizing)
- task_store.py: document-backed day cells, sub-task mutations and the move protocol
- stats.py: per-employee totals over a date range
- cell_state.py: optimistic-write state machine for one grid cell
"""
