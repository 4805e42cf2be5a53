"""Tests for layered config file loading hierarchy."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from min_n8n_mcp.config import ServerConfig

BASE_ENV = {"N8N_API_URL": "http://localhost:5678", "N8N_API_TOKEN": "env-token"}


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    """Run with a fake home directory, an empty cwd and only the base env vars."""
    home = tmp_path / "home"
    home.mkdir()
    project = tmp_path / "project"
    project.mkdir()
    monkeypatch.chdir(project)
    with patch.object(Path, "home", return_value=home):
        with patch.dict(os.environ, BASE_ENV, clear=True):
            yield home, project


class TestConfigHierarchy:
    """Test layered configuration loading (XDG -> home -> project -> env -> overrides)."""

    @pytest.fixture
    def xdg_config_content(self):
        """XDG config directory content (system-wide user defaults)."""
        return """
[http]
retries = 4
concurrency = 8

[logging]
level = "ERROR"
"""

    @pytest.fixture
    def home_config_content(self):
        """Home directory config content (user defaults)."""
        return """
[http]
retries = 5
timeout_ms = 10000

[logging]
level = "DEBUG"
structured = false
"""

    @pytest.fixture
    def project_config_content(self):
        """Project directory config content (project overrides)."""
        return """
[http]
retries = 1

[rate_limit]
min_interval_ms = 100
max_queue = 5
overflow = "reject-oldest"
"""

    def test_defaults_without_files(self, isolated):
        config = ServerConfig.from_env()

        assert config.n8n_api_url == "http://localhost:5678/api/v1"
        assert config.log_level == "INFO"
        assert config.structured_logging is True
        assert config.http_timeout == 30.0
        assert config.http_retries == 2
        assert config.concurrency == 4
        assert config.rate_limit_min_interval == 0.25
        assert config.rate_limit_max_queue == 50
        assert config.rate_limit_overflow == "reject-newest"

    def test_xdg_config_loaded_first(self, isolated, xdg_config_content):
        home, _ = isolated
        xdg = home / ".config" / "min-n8n-mcp"
        xdg.mkdir(parents=True)
        (xdg / "config.toml").write_text(xdg_config_content)

        config = ServerConfig.from_env()

        assert config.http_retries == 4
        assert config.concurrency == 8
        assert config.log_level == "ERROR"

    def test_xdg_config_home_env_respected(self, isolated, tmp_path, xdg_config_content):
        xdg_home = tmp_path / "xdg"
        (xdg_home / "min-n8n-mcp").mkdir(parents=True)
        (xdg_home / "min-n8n-mcp" / "config.toml").write_text(xdg_config_content)

        with patch.dict(os.environ, {"XDG_CONFIG_HOME": str(xdg_home)}):
            config = ServerConfig.from_env()

        assert config.concurrency == 8

    def test_home_config_overrides_xdg(self, isolated, xdg_config_content, home_config_content):
        home, _ = isolated
        xdg = home / ".config" / "min-n8n-mcp"
        xdg.mkdir(parents=True)
        (xdg / "config.toml").write_text(xdg_config_content)
        (home / ".min-n8n-mcp.toml").write_text(home_config_content)

        config = ServerConfig.from_env()

        assert config.http_retries == 5
        assert config.concurrency == 8
        assert config.http_timeout == 10.0
        assert config.log_level == "DEBUG"
        assert config.structured_logging is False

    def test_project_config_overrides_home_config(self, isolated, home_config_content, project_config_content):
        home, project = isolated
        (home / ".min-n8n-mcp.toml").write_text(home_config_content)
        (project / "min-n8n-mcp.toml").write_text(project_config_content)

        config = ServerConfig.from_env()

        assert config.http_retries == 1
        assert config.http_timeout == 10.0
        assert config.rate_limit_min_interval == 0.1
        assert config.rate_limit_max_queue == 5
        assert config.rate_limit_overflow == "reject-oldest"

    def test_env_overrides_files(self, isolated, project_config_content):
        _, project = isolated
        (project / "min-n8n-mcp.toml").write_text(project_config_content)

        with patch.dict(os.environ, {"HTTP_RETRIES": "3", "RATE_LIMIT_OVERFLOW": "reject-newest"}):
            config = ServerConfig.from_env()

        assert config.http_retries == 3
        assert config.rate_limit_overflow == "reject-newest"
        assert config.rate_limit_max_queue == 5

    def test_overrides_win_over_env(self, isolated):
        with patch.dict(os.environ, {"HTTP_RETRIES": "3", "LOG_LEVEL": "debug"}):
            config = ServerConfig.from_env(
                overrides={"http_retries": "7", "log_level": "warn", "n8n_api_token": "cli-token", "concurrency": None}
            )

        assert config.http_retries == 7
        assert config.log_level == "WARNING"
        assert config.n8n_api_token == "cli-token"
        assert config.concurrency == 4

    def test_explicit_config_file_skips_layers(self, isolated, tmp_path, home_config_content):
        home, _ = isolated
        (home / ".min-n8n-mcp.toml").write_text(home_config_content)
        explicit = tmp_path / "explicit.toml"
        explicit.write_text('[n8n]\napi_url = "https://n8n.example.com/api/v1"\napi_token = "file-token"\n')

        with patch.dict(os.environ, {}, clear=True):
            config = ServerConfig.from_env(config_file=str(explicit))

        assert config.n8n_api_url == "https://n8n.example.com/api/v1"
        assert config.n8n_api_token == "file-token"
        assert config.http_retries == 2

    def test_config_file_env_var(self, isolated, tmp_path):
        explicit = tmp_path / "from-env.toml"
        explicit.write_text("[http]\nconcurrency = 2\n")

        with patch.dict(os.environ, {"MIN_N8N_MCP_CONFIG_FILE": str(explicit)}):
            config = ServerConfig.from_env()

        assert config.concurrency == 2
