"""Runtime settings for the Shakespeare MCP server.

Everything here is read once at import time from the environment. All
variables are optional; the defaults give a headless Chromium and INFO
logging on stderr.
"""

import os

SERVER_NAME = "shakespeare"
SERVER_VERSION = "1.0.0"

HEADLESS = os.environ.get("SHAKESPEARE_HEADLESS", "1").strip().lower() not in (
    "0",
    "false",
    "no",
)
LOG_LEVEL = os.environ.get("SHAKESPEARE_LOG_LEVEL", "INFO").strip().upper()

# ~25% of a typical assistant context window
DEFAULT_SIZE_LIMIT = 200_000
OUTPUT_MODES = ("direct", "file")
OUTPUT_PREFIX = "shakespeare-output"
OUTPUT_SUFFIX = ".html"
