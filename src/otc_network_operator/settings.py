"""Runtime settings read from the environment."""

from __future__ import annotations

import os

POLL_INTERVAL_SECONDS = float(os.getenv("POLL_INTERVAL_SECONDS", "300"))
REQUEST_TIMEOUT_SECONDS = float(os.getenv("OTC_REQUEST_TIMEOUT_SECONDS", "30"))
MAX_WORKERS = int(os.getenv("MAX_WORKERS", "4"))
METRICS_PORT = int(os.getenv("METRICS_PORT", "8080"))

# Session cache timing, in seconds
SESSION_TTL_SECONDS = float(os.getenv("SESSION_TTL_HOURS", "23")) * 3600
SESSION_REFRESH_MARGIN_SECONDS = float(os.getenv("SESSION_REFRESH_MARGIN_MINUTES", "5")) * 60

# Delay kopf waits before retrying a failed cycle
RETRY_DELAY_SECONDS = float(os.getenv("RETRY_DELAY_SECONDS", "30"))
