#!/usr/bin/env python3
"""
Status groomer - keeps tracker stories in step with failing Concourse jobs

Each pass takes the currently failing builds, works out which incident each
belongs to and makes sure the incident's story exists and mentions the build
exactly once. Nothing is cached between passes: every decision is made from
a fresh read of the tracker.
"""

import logging
import time
from typing import Any, Callable, List, Optional, Protocol

from constants import (
    BACKLOG_ANCHOR_FILTER,
    BROKEN_BUILD_FILTER,
    BROKEN_BUILD_LABEL,
    DEFAULT_POLL_INTERVAL,
    STORY_STATE_UNSTARTED,
    STORY_TYPE_CHORE,
)
from errors import NoAnchorStoryError
from grouping import classify
from models import (
    Comment,
    FailureObservation,
    GroupingRule,
    Label,
    ObservationResult,
    ReconcileOutcome,
    Story,
)

logger = logging.getLogger(__name__)


class IssueTracker(Protocol):
    def list_stories(self, project_id: Any, filter: str) -> List[Story]: ...

    def create_story(self, project_id: Any, story: Story) -> Story: ...

    def list_comments(self, project_id: Any, story_id: Any) -> List[Comment]: ...

    def add_comment(self, project_id: Any, story_id: Any, text: str) -> None: ...


class JobSource(Protocol):
    def list_failing_job_observations(self, host: str, team: str) -> List[FailureObservation]: ...


def canonical_build_url(host: str, build_url: str) -> str:
    return f"{host}/{build_url}"


def find_existing_story(story_name: str, stories: List[Story]) -> Optional[Story]:
    for story in stories:
        if story.name == story_name:
            return story
    return None


class StatusGroomer:
    """Files and updates tracker stories for failing builds"""

    def __init__(self, tracker: IssueTracker, project_id: Any, host: str,
                 grouping_strategy: Optional[List[GroupingRule]] = None,
                 job_source: Optional[JobSource] = None, team: str = "",
                 poll_interval: float = DEFAULT_POLL_INTERVAL,
                 sleep: Callable[[float], None] = time.sleep):
        self.tracker = tracker
        self.project_id = project_id
        self.host = host
        self.grouping_strategy = list(grouping_strategy or [])
        self.job_source = job_source
        self.team = team
        self.poll_interval = poll_interval
        self.sleep = sleep

    def reconcile(self, incident_key: str, build_url: str) -> ReconcileOutcome:
        """Create, comment on, or leave alone the story for one incident"""
        stories = self.tracker.list_stories(self.project_id, BROKEN_BUILD_FILTER)

        logger.info("🔍 Checking for a previously created story...")
        existing_story = find_existing_story(incident_key, stories)
        if existing_story is not None:
            logger.info(f"📌 Found story {existing_story.id}")
            return self._update_story(existing_story, build_url)

        return self._create_story(incident_key, build_url)

    def _update_story(self, story: Story, build_url: str) -> ReconcileOutcome:
        comments = self.tracker.list_comments(self.project_id, story.id)
        if any(comment.text == build_url for comment in comments):
            logger.info(f"ℹ️  {build_url} already reported on story {story.id}")
            return ReconcileOutcome.NOOP

        logger.info("💬 Commenting on previously created story...")
        self.tracker.add_comment(self.project_id, story.id, build_url)
        return ReconcileOutcome.COMMENTED

    def _create_story(self, story_name: str, build_url: str) -> ReconcileOutcome:
        logger.info("📝 Creating a new story...")

        logger.info("🔍 Retrieving top of backlog story id...")
        backlog = self.tracker.list_stories(self.project_id, BACKLOG_ANCHOR_FILTER)
        if not backlog:
            raise NoAnchorStoryError(
                f"No unstarted story in project {self.project_id} to place '{story_name}' before"
            )
        anchor = backlog[0]
        logger.info(f"📌 Found story {anchor.id}")

        story = self.tracker.create_story(self.project_id, Story(
            name=story_name,
            story_type=STORY_TYPE_CHORE,
            current_state=STORY_STATE_UNSTARTED,
            labels=[Label(name=BROKEN_BUILD_LABEL)],
            comments=[Comment(text=build_url)],
            before_id=anchor.id,
        ))

        logger.info(f"✅ New story created {story.id}")
        return ReconcileOutcome.CREATED

    def run_pass(self, observations: List[FailureObservation]) -> List[ObservationResult]:
        """Reconcile every failure in order; one failure's error never stops the rest"""
        results = []

        for observation in observations:
            build = observation.build
            result = ObservationResult(observation=observation)
            try:
                result.incident_key = classify(
                    build.pipeline_name, build.job_name, build.status, self.grouping_strategy
                )
                logger.info(f"🚨 {build.pipeline_name}/{build.job_name} -> '{result.incident_key}'")
                result.outcome = self.reconcile(
                    result.incident_key, canonical_build_url(self.host, build.url)
                )
            except Exception as e:
                logger.error(f"❌ Failed to handle {observation.job_url}: {e}")
                result.error = e
            results.append(result)

        failed = sum(1 for r in results if not r.ok)
        logger.info(f"📊 Pass complete: {len(results) - failed} handled, {failed} failed")
        return results

    def groom(self, max_iterations: int = -1) -> int:
        """
        Poll Concourse and reconcile failures until the iteration bound is hit.

        A negative max_iterations polls forever; otherwise the loop stops once
        more than max_iterations passes have run. Returns the number of passes.
        """
        if self.job_source is None:
            raise ValueError("groom() needs a job source")

        iteration = 0
        while True:
            logger.info("📥 Retrieving jobs...")
            try:
                observations = self.job_source.list_failing_job_observations(self.host, self.team)
            except Exception as e:
                logger.error(f"❌ Could not retrieve jobs: {e}")
                observations = []

            logger.info("🔎 Checking for build errors...")
            self.run_pass(observations)

            iteration += 1
            if max_iterations >= 0 and iteration > max_iterations:
                return iteration

            logger.info("😴 Sleeping...")
            self.sleep(self.poll_interval)
