"""
Utility functions for the CLI.
"""

import sys
import logging
from rich.console import Console

from mptv.config import ConfigManager
from mptv.service import LiveTvService


def get_app_state(verbose: bool) -> dict:
    """
    Get the current state of the application
    """

    console = Console()

    logger = logging.getLogger("mptv")
    if verbose:
        log_level = logging.DEBUG
    else:
        log_level = logging.INFO
    logging.basicConfig(
        level=log_level,
        format="(%(name)s) %(message)s",
    )

    # Initialize configuration
    try:
        config_manager = ConfigManager()
    except OSError as e:
        console.print(f"[red]Error loading configuration:[/] {str(e)}")
        sys.exit(1)

    # The service takes a fresh snapshot for every operation
    service = LiveTvService(config_manager.snapshot)

    return {
        "console": console,
        "logger": logger,
        "config_manager": config_manager,
        "service": service,
    }
