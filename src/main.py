#!/usr/bin/env python3
"""
Concourse Tracker Bot - files tracker stories for failing Concourse jobs
"""

import logging
import os
import sys
from dataclasses import dataclass, field
from typing import List, Optional

from concourse_client import ConcourseClient
from constants import DEFAULT_POLL_INTERVAL, TRACKER_API_URL
from errors import ConfigurationError
from github_client import GitHubIssueTracker
from grouping import load_grouping_strategy
from logging_config import setup_logging
from models import GroupingRule
from status_groomer import StatusGroomer
from tracker_client import TrackerClient

logger = logging.getLogger(__name__)

BACKENDS = ("pivotal", "github")


@dataclass
class Config:
    """Settings read from the environment"""
    host: str
    team: str
    backend: str = "pivotal"
    concourse_token: Optional[str] = None
    tracker_api_token: Optional[str] = None
    tracker_project_id: Optional[int] = None
    tracker_api_url: str = TRACKER_API_URL
    github_token: Optional[str] = None
    github_repository: Optional[str] = None
    grouping_strategy: List[GroupingRule] = field(default_factory=list)
    poll_interval: float = DEFAULT_POLL_INTERVAL
    max_iterations: int = -1

    @property
    def project_id(self):
        return self.github_repository if self.backend == "github" else self.tracker_project_id


def _int_env(name: str, default: Optional[int] = None) -> Optional[int]:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")


def load_config() -> Config:
    """Build the configuration from environment variables"""
    host = os.getenv("CONCOURSE_HOST", "").rstrip("/")
    team = os.getenv("CONCOURSE_TEAM", "")
    if not host or not team:
        raise ConfigurationError("CONCOURSE_HOST and CONCOURSE_TEAM must be set")

    backend = os.getenv("TRACKER_BACKEND", "pivotal").lower()
    if backend not in BACKENDS:
        raise ConfigurationError(f"TRACKER_BACKEND must be one of {', '.join(BACKENDS)}, got {backend!r}")

    config = Config(
        host=host,
        team=team,
        backend=backend,
        concourse_token=os.getenv("CONCOURSE_TOKEN") or None,
        tracker_api_token=os.getenv("TRACKER_API_TOKEN"),
        tracker_project_id=_int_env("TRACKER_PROJECT_ID"),
        tracker_api_url=os.getenv("TRACKER_API_URL", TRACKER_API_URL),
        github_token=os.getenv("GITHUB_TOKEN"),
        github_repository=os.getenv("GITHUB_REPOSITORY"),
        grouping_strategy=load_grouping_strategy(os.getenv("GROUPING_STRATEGY_FILE")),
        poll_interval=_int_env("POLL_INTERVAL_SECONDS", DEFAULT_POLL_INTERVAL),
        max_iterations=_int_env("MAX_ITERATIONS", -1),
    )

    if backend == "pivotal" and (not config.tracker_api_token or config.tracker_project_id is None):
        raise ConfigurationError("TRACKER_API_TOKEN and TRACKER_PROJECT_ID must be set")
    if backend == "github" and not all([config.github_token, config.github_repository]):
        raise ConfigurationError("GITHUB_TOKEN and GITHUB_REPOSITORY must be set")
    if config.poll_interval < 0:
        raise ConfigurationError(f"POLL_INTERVAL_SECONDS must not be negative, got {config.poll_interval}")

    return config


def build_groomer(config: Config) -> StatusGroomer:
    if config.backend == "github":
        tracker = GitHubIssueTracker(config.github_token)
    else:
        tracker = TrackerClient(config.tracker_api_token, config.tracker_api_url)

    return StatusGroomer(
        tracker=tracker,
        project_id=config.project_id,
        host=config.host,
        grouping_strategy=config.grouping_strategy,
        job_source=ConcourseClient(config.concourse_token),
        team=config.team,
        poll_interval=config.poll_interval,
    )


def main():
    """Entry point for Concourse Tracker Bot"""
    setup_logging(os.getenv("LOG_LEVEL", "INFO"))
    try:
        config = load_config()
    except ConfigurationError as e:
        logger.error(f"❌ Concourse Tracker Bot failed to start: {e}")
        sys.exit(1)

    logger.info(f"🚀 Watching {config.host} team '{config.team}' -> {config.backend} project {config.project_id}")
    groomer = build_groomer(config)
    groomer.groom(config.max_iterations)


if __name__ == "__main__":
    main()
