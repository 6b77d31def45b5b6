# src/flowhub/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState for this tab, then starts:
- delivery poller, countdown sync and reminder checks in a background thread,
- console REPL in the main thread.
"""

from __future__ import annotations

import logging
import signal

from ..cli.background import start_tab_in_background
from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    # IMPORTANT: reuse same settings object
    state = create_initial_state(settings=settings)

    runner = start_tab_in_background(state)
    if runner is None:
        logger.error("Background loop failed to start; notifications will not be delivered.")

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        # Unblocks input() in the console loop.
        raise KeyboardInterrupt

    try:
        signal.signal(signal.SIGTERM, _handle_signal)
    except (ValueError, OSError, AttributeError):
        # Not every platform supports SIGTERM handlers.
        pass

    try:
        run_console_loop(state)
    finally:
        if runner is not None:
            runner.stop()
            runner.join(timeout=10.0)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
