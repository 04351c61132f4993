"""Default configuration values for anchorsync.

This module centralizes the hard-coded defaults (intervals, delays,
timeouts, staleness window) into a single location. All modules
should import these constants instead of hard-coding values.

Usage:
    from anchorsync.config.defaults import (
        REFRESH_CHECK_INTERVAL_MS,
        RETRY_DELAY_MS,
    )
"""

from __future__ import annotations

# =============================================================================
# Refresh Defaults
# =============================================================================

# Periodic refresh interval (10 minutes)
REFRESH_CHECK_INTERVAL_MS = 10 * 60_000

# Number of attempts during the initial refresh (None means unbounded)
REFRESH_INITIAL_MAX_ATTEMPTS = 1


# =============================================================================
# Retry Defaults
# =============================================================================

RETRY_DELAY_MS = 5000  # fixed delay between remote fetch attempts


# =============================================================================
# HTTP Defaults
# =============================================================================

HTTP_TIMEOUT_SECONDS = 30.0


# =============================================================================
# Staleness Defaults
# =============================================================================

# Anchors older than the ninth-oldest retained anchor are stale
STALE_WINDOW = 9


# =============================================================================
# Environment variable names
# =============================================================================

ENV_LOCAL_PATH = "ANCHORSYNC_LOCAL_PATH"
ENV_REMOTE_URLS = "ANCHORSYNC_REMOTE_URLS"
ENV_CHECK_INTERVAL_MS = "ANCHORSYNC_CHECK_INTERVAL_MS"
ENV_RETRY_DELAY_MS = "ANCHORSYNC_RETRY_DELAY_MS"
ENV_HTTP_TIMEOUT = "ANCHORSYNC_HTTP_TIMEOUT"
