#!/usr/bin/env python3
"""
Data models for Concourse Tracker Bot
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Build:
    """Most recent completed run of a Concourse job"""
    status: str
    job_name: str
    pipeline_name: str
    url: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Build":
        return cls(
            status=data.get("status", ""),
            job_name=data.get("job_name", ""),
            pipeline_name=data.get("pipeline_name", ""),
            url=data.get("url", ""),
        )


@dataclass(frozen=True)
class Job:
    """Concourse job status document"""
    finished_build: Optional[Build] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Job":
        finished = data.get("finished_build")
        return cls(finished_build=Build.from_dict(finished) if finished else None)


@dataclass(frozen=True)
class FailureObservation:
    """A failed build together with the job status URL it was read from"""
    build: Build
    job_url: str


@dataclass(frozen=True)
class GroupingRule:
    """Pattern matched against "{pipeline}-{job}" and the incident label it maps to"""
    pattern: str
    label: str


@dataclass
class Label:
    name: str


@dataclass
class Comment:
    text: str


@dataclass
class Story:
    """Tracker story as exchanged with the tracker API"""
    name: str
    id: Optional[Any] = None
    current_state: Optional[str] = None
    story_type: Optional[str] = None
    labels: List[Label] = field(default_factory=list)
    comments: List[Comment] = field(default_factory=list)
    before_id: Optional[Any] = None

    def to_payload(self) -> Dict[str, Any]:
        """Request body for story creation, empty fields left out"""
        payload: Dict[str, Any] = {"name": self.name}
        if self.id is not None:
            payload["id"] = self.id
        if self.current_state:
            payload["current_state"] = self.current_state
        if self.labels:
            payload["labels"] = [{"name": label.name} for label in self.labels]
        if self.story_type:
            payload["story_type"] = self.story_type
        if self.before_id is not None:
            payload["before_id"] = self.before_id
        if self.comments:
            payload["comments"] = [{"text": comment.text} for comment in self.comments]
        return payload

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Story":
        return cls(
            name=data.get("name", ""),
            id=data.get("id"),
            current_state=data.get("current_state"),
            story_type=data.get("story_type"),
            labels=[Label(name=label.get("name", "")) for label in data.get("labels") or []],
            comments=[Comment(text=c.get("text", "")) for c in data.get("comments") or []],
            before_id=data.get("before_id"),
        )


class ReconcileOutcome(Enum):
    """Side effect performed for one failure"""
    CREATED = "created"
    COMMENTED = "commented"
    NOOP = "no-op"


@dataclass
class ObservationResult:
    """Result of handling one failure during a pass"""
    observation: FailureObservation
    incident_key: Optional[str] = None
    outcome: Optional[ReconcileOutcome] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None
