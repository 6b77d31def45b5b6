"""
Deadline subsystem.

Components:
- parser.py: free-text phrase -> absolute local datetime
- memo.py: resolve each task's deadline exactly once
- priority.py: urgent / important / normal tiers from time remaining
"""
