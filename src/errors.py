#!/usr/bin/env python3
"""
Errors raised by Concourse Tracker Bot
"""


class GroomerError(Exception):
    """Base class for bot errors"""


class TransportError(GroomerError):
    """A CI or tracker call failed or returned a non-success status"""


class DecodingError(GroomerError):
    """A CI or tracker response could not be decoded"""


class NoAnchorStoryError(GroomerError):
    """No unresolved story exists to place a new story before"""


class ConfigurationError(GroomerError):
    """Startup configuration is missing or invalid"""
