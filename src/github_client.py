#!/usr/bin/env python3
"""
GitHub Issues tracker backend

Maps the tracker operations onto issues of one repository: stories are
issues, the story id is the issue number, and comments are issue comments.
"""

import logging
from typing import List

from github import Github, GithubException

from constants import BACKLOG_ANCHOR_FILTER, BROKEN_BUILD_FILTER, BROKEN_BUILD_LABEL
from errors import TransportError
from models import Comment, Label, Story

logger = logging.getLogger(__name__)


def _issue_to_story(issue) -> Story:
    return Story(
        name=issue.title,
        id=issue.number,
        current_state=issue.state,
        labels=[Label(name=label.name) for label in issue.labels],
    )


class GitHubIssueTracker:
    def __init__(self, github_token: str):
        self.github_token = github_token
        self.github = Github(self.github_token)

    def list_stories(self, project_id: str, filter: str) -> List[Story]:
        """Open issues of the repository selected by one of the bot's filters"""
        try:
            repo = self.github.get_repo(project_id)
            if filter == BROKEN_BUILD_FILTER:
                try:
                    label = repo.get_label(BROKEN_BUILD_LABEL)
                except GithubException as e:
                    if e.status != 404:
                        raise
                    # Label not created yet, so no issue can carry it
                    return []
                issues = repo.get_issues(state="open", labels=[label])
            elif filter == BACKLOG_ANCHOR_FILTER:
                return [self._backlog_anchor(repo)]
            else:
                raise ValueError(f"Unsupported filter for GitHub issues: {filter!r}")

            return [_issue_to_story(issue) for issue in issues if issue.pull_request is None]

        except GithubException as e:
            raise TransportError(f"Error listing issues in {project_id}: {e}") from e

    @staticmethod
    def _backlog_anchor(repo) -> Story:
        # Issues have no backlog order and before_id is ignored on creation,
        # so an empty repository still gets a placeholder anchor.
        for issue in repo.get_issues(state="open"):
            if issue.pull_request is None:
                return _issue_to_story(issue)
        return Story(name="", id=None)

    def create_story(self, project_id: str, story: Story) -> Story:
        if story.before_id is not None:
            logger.debug(f"GitHub issues have no backlog order - ignoring before_id {story.before_id}")

        try:
            repo = self.github.get_repo(project_id)
            issue = repo.create_issue(
                title=story.name,
                labels=[label.name for label in story.labels],
            )
            for comment in story.comments:
                issue.create_comment(comment.text)
        except GithubException as e:
            raise TransportError(f"Error creating issue in {project_id}: {e}") from e

        logger.info(f"Created issue #{issue.number} in {project_id}")
        created = _issue_to_story(issue)
        created.comments = list(story.comments)
        return created

    def list_comments(self, project_id: str, story_id: int) -> List[Comment]:
        try:
            issue = self.github.get_repo(project_id).get_issue(story_id)
            return [Comment(text=comment.body) for comment in issue.get_comments()]
        except GithubException as e:
            raise TransportError(f"Error listing comments on #{story_id}: {e}") from e

    def add_comment(self, project_id: str, story_id: int, text: str) -> None:
        try:
            issue = self.github.get_repo(project_id).get_issue(story_id)
            issue.create_comment(text)
        except GithubException as e:
            raise TransportError(f"Error commenting on #{story_id}: {e}") from e
