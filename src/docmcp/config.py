"""
docmcp Configuration — Unified settings for the HTTP MCP server

Load order: env vars > ~/.docmcp/config.env > defaults
"""

import os
from pathlib import Path

from docmcp import __version__


def _load_config_env():
    """Load key=value pairs from ~/.docmcp/config.env if it exists."""
    config_file = Path.home() / ".docmcp" / "config.env"
    if not config_file.exists():
        return
    for line in config_file.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" in line:
            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key and key not in os.environ:
                os.environ[key] = value


# Load config.env before reading env vars
_load_config_env()


class Config:
    # Server identity
    SERVER_NAME = "docmcp"
    SERVER_VERSION = __version__
    PROTOCOL_VERSION = "2024-11-05"

    # Paths
    DATA_DIR = Path(os.environ.get("DOCMCP_DATA_DIR", str(Path.home() / ".docmcp")))
    LOG_DIR = DATA_DIR / "logs"
    DB_PATH = Path(os.environ.get("DOCMCP_DB_PATH", str(DATA_DIR / "documents.db")))

    # Logging
    LOG_LEVEL = os.environ.get("DOCMCP_LOG_LEVEL", "INFO").upper()
    LOG_FILE = LOG_DIR / "docmcp.log"
    ERROR_LOG = LOG_DIR / "docmcp-errors.log"

    # HTTP
    HOST = os.environ.get("DOCMCP_HOST", "127.0.0.1")
    PORT = int(os.environ.get("DOCMCP_PORT", "8080"))
    MCP_PATH = "/mcp"

    # How often an in-flight request checks whether its caller went away
    DISCONNECT_POLL_S = float(os.environ.get("DOCMCP_DISCONNECT_POLL_S", "0.1"))

    @classmethod
    def ensure_dirs(cls):
        """Create required directories."""
        cls.DATA_DIR.mkdir(parents=True, exist_ok=True)
        cls.LOG_DIR.mkdir(parents=True, exist_ok=True)
