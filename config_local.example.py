# config_local.example.py

"""
Example local overrides.

Usage:
  1) Copy this file to `config_local.py`
  2) Adjust values for your machine
  3) Never commit `config_local.py` (it is gitignored)

Prefer `.env` for everything else. Only these switches are read from here.
"""

# Example: headless machine, print notifications to the console instead
# DESKTOP_NOTIFICATIONS = False

# Example: run the reminder scheduler in exactly one tab
# REMINDERS_ENABLED = True
