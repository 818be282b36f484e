#!/usr/bin/env python3
"""
Constants for Concourse Tracker Bot
"""

# Build status that marks a job as broken
FAILED_STATUS = "failed"

# Label attached to every story filed by the bot
BROKEN_BUILD_LABEL = "broken build"

# Tracker filter for unresolved stories the bot may reuse
BROKEN_BUILD_FILTER = f'-state:accepted label:"{BROKEN_BUILD_LABEL}"'

# Tracker filter for the top-of-backlog story new stories are placed before
BACKLOG_ANCHOR_FILTER = "-type:release state:unstarted"

# Attributes of newly created stories
STORY_TYPE_CHORE = "chore"
STORY_STATE_UNSTARTED = "unstarted"

# Pivotal Tracker API
TRACKER_API_URL = "https://www.pivotaltracker.com/services/v5"
TRACKER_TOKEN_HEADER = "X-TrackerToken"

# Seconds to sleep between polling passes
DEFAULT_POLL_INTERVAL = 300

# Per-request timeout for CI and tracker HTTP calls
REQUEST_TIMEOUT = 30
