#!/usr/bin/env python3
"""
Logging setup for Concourse Tracker Bot
"""

import logging
import sys


def setup_logging(level: str = "INFO") -> None:
    """Send log records of the given level and above to standard output"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stdout,
    )
    # HTTP libraries log every request at INFO/DEBUG
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('github').setLevel(logging.WARNING)
