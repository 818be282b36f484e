#!/usr/bin/env python3
"""
Pivotal Tracker client utilities
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from constants import REQUEST_TIMEOUT, TRACKER_API_URL, TRACKER_TOKEN_HEADER
from errors import DecodingError, TransportError
from models import Comment, Story

logger = logging.getLogger(__name__)


class TrackerClient:
    """Client for the Pivotal Tracker v5 REST API"""

    def __init__(self, api_token: str, tracker_api: str = TRACKER_API_URL):
        self.api_token = api_token
        self.tracker_api = tracker_api.rstrip("/")

    def _headers(self) -> Dict[str, str]:
        return {
            TRACKER_TOKEN_HEADER: self.api_token,
            "Content-Type": "application/json",
        }

    def _request(self, method: str, path: str, params: Optional[Dict[str, str]] = None,
                 payload: Optional[Dict[str, Any]] = None) -> requests.Response:
        url = f"{self.tracker_api}{path}"
        try:
            response = requests.request(
                method,
                url,
                headers=self._headers(),
                params=params,
                json=payload,
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

        if response.status_code != 200:
            raise TransportError(f"{response.status_code} - {response.text}")

        return response

    @staticmethod
    def _decode(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise DecodingError(f"Invalid JSON from tracker: {e}") from e

    def list_stories(self, project_id: int, filter: str = "") -> List[Story]:
        """List stories of a project, optionally narrowed by a tracker search filter"""
        params = {"filter": filter} if filter else None
        response = self._request("GET", f"/projects/{project_id}/stories", params=params)
        data = self._decode(response)
        if not isinstance(data, list):
            raise DecodingError(f"Expected a list of stories, got {type(data).__name__}")
        return [Story.from_dict(item) for item in data]

    def create_story(self, project_id: int, story: Story) -> Story:
        response = self._request("POST", f"/projects/{project_id}/stories", payload=story.to_payload())
        data = self._decode(response)
        if not isinstance(data, dict):
            raise DecodingError(f"Expected a story object, got {type(data).__name__}")
        return Story.from_dict(data)

    def list_comments(self, project_id: int, story_id: int) -> List[Comment]:
        response = self._request("GET", f"/projects/{project_id}/stories/{story_id}/comments")
        data = self._decode(response)
        if not isinstance(data, list):
            raise DecodingError(f"Expected a list of comments, got {type(data).__name__}")
        return [Comment(text=item.get("text", "")) for item in data]

    def add_comment(self, project_id: int, story_id: int, text: str) -> None:
        self._request(
            "POST",
            f"/projects/{project_id}/stories/{story_id}/comments",
            payload={"text": text},
        )
