"""
Delivery subsystem.

Components:
- lock_store.py: shared claim store (in-memory, SQLite)
- processed.py: capped set of ids this tab already handled
- dismissal.py: reports displayed records back to the server
- coordinator.py: claim/confirm protocol and the polling loop
"""
