"""Tests for docmcp configuration."""

import os
import pytest
from pathlib import Path


class TestConfig:
    def test_defaults(self):
        from docmcp.config import Config
        assert Config.SERVER_NAME == "docmcp"
        assert Config.SERVER_VERSION == "1.0.0"
        assert Config.PROTOCOL_VERSION == "2024-11-05"
        assert Config.MCP_PATH == "/mcp"

    def test_data_dir_default(self):
        from docmcp.config import Config
        # Default is ~/.docmcp unless overridden by env
        assert "docmcp" in str(Config.DATA_DIR).lower() or "DOCMCP_DATA_DIR" in os.environ

    def test_ensure_dirs(self, tmp_docmcp_dir):
        from docmcp.config import Config
        Config.ensure_dirs()
        assert Config.DATA_DIR.exists()
        assert Config.LOG_DIR.exists()

    def test_config_env_loading(self, tmp_path, monkeypatch):
        """config.env values fill in env vars that are not already set."""
        from docmcp import config

        home = tmp_path / "home"
        (home / ".docmcp").mkdir(parents=True)
        (home / ".docmcp" / "config.env").write_text(
            "# Comment line\n"
            "DOCMCP_TEST_VAR=hello_world\n"
            "\n"
            "DOCMCP_TEST_QUOTED=\"quoted value\"\n"
            "DOCMCP_TEST_PRESET=from_file\n"
        )

        monkeypatch.setattr(Path, "home", classmethod(lambda cls: home))
        monkeypatch.delenv("DOCMCP_TEST_VAR", raising=False)
        monkeypatch.delenv("DOCMCP_TEST_QUOTED", raising=False)
        monkeypatch.setenv("DOCMCP_TEST_PRESET", "from_env")

        config._load_config_env()
        try:
            assert os.environ.get("DOCMCP_TEST_VAR") == "hello_world"
            assert os.environ.get("DOCMCP_TEST_QUOTED") == "quoted value"
            assert os.environ.get("DOCMCP_TEST_PRESET") == "from_env"
        finally:
            os.environ.pop("DOCMCP_TEST_VAR", None)
            os.environ.pop("DOCMCP_TEST_QUOTED", None)
