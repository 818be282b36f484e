#!/usr/bin/env python3
"""
Concourse client utilities
"""

import logging
from typing import Dict, List, Optional

import requests

from constants import FAILED_STATUS, REQUEST_TIMEOUT
from errors import DecodingError, GroomerError, TransportError
from models import FailureObservation, Job

logger = logging.getLogger(__name__)


class ConcourseClient:
    """Reads pipeline and job status from the Concourse API"""

    def __init__(self, token: Optional[str] = None):
        self.token = token

    def _get_json(self, url: str):
        headers: Dict[str, str] = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            response = requests.get(url, headers=headers, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as e:
            raise TransportError(f"GET {url} failed: {e}") from e

        if response.status_code != 200:
            raise TransportError(f"GET {url}: {response.status_code} - {response.text}")

        try:
            return response.json()
        except ValueError as e:
            raise DecodingError(f"Invalid JSON from {url}: {e}") from e

    def get_job_urls(self, host: str, team: str) -> List[str]:
        """Job status URLs for every job of every active pipeline of a team"""
        pipelines = self._get_json(f"{host}/api/v1/teams/{team}/pipelines")
        if not isinstance(pipelines, list):
            raise DecodingError(f"Expected a list of pipelines, got {type(pipelines).__name__}")

        urls = []
        seen = set()
        for pipeline in pipelines:
            if pipeline.get("paused"):
                continue

            for group in pipeline.get("groups") or []:
                for job in group.get("jobs") or []:
                    url = f"{host}/api/v1/teams/{team}/pipelines/{pipeline['name']}/jobs/{job}"
                    if url not in seen:
                        seen.add(url)
                        urls.append(url)

        return urls

    def get_job(self, url: str) -> Job:
        data = self._get_json(url)
        if not isinstance(data, dict):
            raise DecodingError(f"Expected a job object from {url}, got {type(data).__name__}")
        return Job.from_dict(data)

    def list_failing_job_observations(self, host: str, team: str) -> List[FailureObservation]:
        """Most recent builds that failed, one per job URL"""
        urls = self.get_job_urls(host, team)
        logger.info(f"🔎 Checking {len(urls)} job(s) for build errors...")

        observations = []
        for url in urls:
            logger.debug(f"checking {url}...")
            try:
                job = self.get_job(url)
            except GroomerError as e:
                logger.error(f"❌ Could not read job {url}: {e}")
                continue

            build = job.finished_build
            if build is not None and build.status == FAILED_STATUS:
                logger.info(f"🚨 {build.pipeline_name}/{build.job_name} has {build.status}")
                observations.append(FailureObservation(build=build, job_url=url))

        return observations
