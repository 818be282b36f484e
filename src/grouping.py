#!/usr/bin/env python3
"""
Grouping of failing jobs into incidents

A grouping strategy is an ordered list of GroupingRule. The first rule whose
pattern matches "{pipeline}-{job}" names the incident; otherwise the failure
gets an incident of its own.
"""

import json
import logging
import re
from functools import lru_cache
from typing import Any, List, Optional, Pattern

from errors import ConfigurationError
from models import GroupingRule

logger = logging.getLogger(__name__)


@lru_cache(maxsize=256)
def _compile(pattern: str) -> Optional[Pattern]:
    try:
        return re.compile(pattern)
    except re.error as e:
        logger.debug(f"⚠️  Ignoring invalid grouping pattern {pattern!r}: {e}")
        return None


def classify(pipeline_name: str, job_name: str, status: str,
             grouping_strategy: List[GroupingRule]) -> str:
    """Return the incident key (story name) for a failing job"""
    probe = f"{pipeline_name}-{job_name}"

    for rule in grouping_strategy:
        regex = _compile(rule.pattern)
        if regex is not None and regex.search(probe):
            return f"{rule.label} has failed"

    return f"{pipeline_name}/{job_name} has {status}"


def parse_grouping_config(config: Any) -> List[GroupingRule]:
    """
    Build an ordered grouping strategy from configuration.

    Accepts either a mapping of group label to patterns, kept in its
    insertion order, or a list of {"group": ..., "patterns": [...]} entries.
    Each pattern becomes its own rule, so an invalid pattern is dropped
    without taking the rest of its group with it.
    """
    if config is None:
        return []

    if isinstance(config, dict):
        entries = list(config.items())
    elif isinstance(config, list):
        entries = []
        for i, entry in enumerate(config):
            if not isinstance(entry, dict) or "group" not in entry:
                raise ConfigurationError(f"Grouping entry {i} must be an object with a 'group' key")
            entries.append((entry["group"], entry.get("patterns", [])))
    else:
        raise ConfigurationError("Grouping configuration must be an object or a list")

    strategy = []
    for group, patterns in entries:
        if not isinstance(group, str) or not group:
            raise ConfigurationError(f"Grouping label must be a non-empty string, got {group!r}")
        if isinstance(patterns, str):
            patterns = [patterns]
        if not isinstance(patterns, list) or not all(isinstance(p, str) for p in patterns):
            raise ConfigurationError(f"Patterns for group '{group}' must be a list of strings")
        rules = []
        for pattern in patterns:
            try:
                re.compile(pattern)
            except re.error as e:
                logger.warning(f"⚠️  Dropping invalid pattern {pattern!r} for group '{group}': {e}")
                continue
            rules.append(GroupingRule(pattern=pattern, label=group))

        if not rules:
            logger.warning(f"⚠️  Group '{group}' has no usable patterns - skipping")
        strategy.extend(rules)

    return strategy


def load_grouping_strategy(path: Optional[str]) -> List[GroupingRule]:
    """Read a grouping strategy from a JSON file"""
    if not path:
        return []

    try:
        with open(path, "r") as f:
            config = json.load(f)
    except OSError as e:
        raise ConfigurationError(f"Could not read grouping file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Grouping file {path} is not valid JSON: {e}") from e

    strategy = parse_grouping_config(config)
    logger.info(f"📚 Loaded {len(strategy)} grouping rule(s) from {path}")
    return strategy
