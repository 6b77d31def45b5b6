"""
flowhub: deadline interpretation and cross-tab notification delivery.

Subpackages:
- deadlines/: free-text deadline parser, per-task memo, priority tiers
- countdown/: tick source and per-task countdown state machine
- delivery/: lock stores and the at-most-once delivery coordinator
- tasks/: models, SQLite store, reminder scheduler
- connectors/: HTTP feed/dismissal, notifiers, console REPL
- cli/: composition root and entrypoint
"""
