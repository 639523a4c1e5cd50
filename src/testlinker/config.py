"""Configuration via environment variables."""

import os
from pathlib import Path

# TestLink configuration (XML-RPC endpoint, e.g. .../lib/api/xmlrpc/v1/xmlrpc.php)
TESTLINK_URL = os.environ.get("TLINK_TESTLINK_URL", "")
TESTLINK_DEV_KEY = os.environ.get("TLINK_DEV_KEY", "")

# Custom field holding the JUnit class name of an automated test case
KEY_CUSTOM_FIELD = os.environ.get("TLINK_KEY_FIELD", "automated-tests")

# Ant-style include pattern for JUnit reports
DEFAULT_INCLUDE = os.environ.get("TLINK_INCLUDE", "**/TEST-*.xml")

DEFAULT_FORMAT = os.environ.get("TLINK_FORMAT", "summary")

LOG_LEVEL = os.environ.get("TLINK_LOG_LEVEL", "INFO")

# Cache configuration (follows XDG_CACHE_HOME convention)
CACHE_DIR = Path(os.environ.get(
    "TLINK_CACHE_DIR",
    Path(os.environ.get("XDG_CACHE_HOME", Path.home() / ".cache")) / "testlinker"
))

CACHE_TTL_HOURS = int(os.environ.get("TLINK_CACHE_TTL", "24"))

# SVN credentials, empty for anonymous access
SVN_USERNAME = os.environ.get("TLINK_SVN_USER", "")
SVN_PASSWORD = os.environ.get("TLINK_SVN_PASSWORD", "")
SVN_TIMEOUT = int(os.environ.get("TLINK_SVN_TIMEOUT", "60"))
