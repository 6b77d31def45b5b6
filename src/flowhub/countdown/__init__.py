"""Live countdowns: ticker.py (tick source) and engine.py (state machine, board)."""
