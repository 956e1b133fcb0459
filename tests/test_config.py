"""Tests for configuration loading."""

import io
import json
import logging

import click
import pytest
from click.testing import CliRunner

from modserve.cli import build_config, load_config, main
from modserve.exceptions import ConfigValidationError
from modserve.logger import logger, setup_logger
from modserve.models import ServerConfig


class TestServerConfig:
    def test_defaults(self):
        config = ServerConfig.from_dict({})
        assert config.server.port == 8080
        assert config.database.url.startswith("sqlite+aiosqlite://")
        assert config.feed.timeout == 30
        assert config.debug is False

    def test_sections(self):
        config = ServerConfig.from_dict(
            {
                "server": {"port": 9000, "public_url": "https://mods.example.com/"},
                "database": {"url": "sqlite+aiosqlite:///:memory:"},
                "feed": {"timeout": "5"},
                "debug": True,
            }
        )
        assert config.server.public_url == "https://mods.example.com"
        assert config.feed.timeout == 5.0
        assert config.debug is True

    @pytest.mark.parametrize(
        "data",
        [
            {"server": "oops"},
            {"server": {"port": -1}},
            {"server": {"port": True}},
            {"server": {"storage": ""}},
            {"database": {"url": ""}},
        ],
    )
    def test_invalid(self, data):
        with pytest.raises(ConfigValidationError):
            ServerConfig.from_dict(data)


class TestLoadConfig:
    def test_toml(self, tmp_path):
        path = tmp_path / "modserve.toml"
        path.write_text('[server]\nport = 9001\nstorage = "blobs"\n')

        data = load_config(str(path))
        assert data == {"server": {"port": 9001, "storage": "blobs"}}

    def test_yaml_and_json(self, tmp_path):
        yaml_path = tmp_path / "modserve.yaml"
        yaml_path.write_text("server:\n  port: 9002\n")
        json_path = tmp_path / "modserve.json"
        json_path.write_text(json.dumps({"debug": True}))

        assert load_config(str(yaml_path)) == {"server": {"port": 9002}}
        assert load_config(str(json_path)) == {"debug": True}

    def test_missing_and_unsupported(self, tmp_path):
        with pytest.raises(click.ClickException):
            load_config(str(tmp_path / "missing.toml"))

        ini = tmp_path / "modserve.ini"
        ini.write_text("[server]")
        with pytest.raises(click.ClickException):
            load_config(str(ini))

    def test_build_config_reports_validation_errors(self, tmp_path):
        path = tmp_path / "modserve.toml"
        path.write_text("[server]\nport = 0\n")

        with pytest.raises(click.ClickException):
            build_config(str(path), debug=False)


class TestCLI:
    def test_init_db(self, tmp_path):
        db = tmp_path / "cli.db"
        path = tmp_path / "modserve.toml"
        path.write_text(f'[database]\nurl = "sqlite+aiosqlite:///{db.as_posix()}"\n')

        result = CliRunner().invoke(main, ["init-db", str(path)])

        assert result.exit_code == 0, result.output
        assert db.exists()


class TestLogger:
    def test_stdlib_records_reach_loguru(self, tmp_path):
        sink = io.StringIO()
        log_file = tmp_path / "modserve.log"

        setup_logger(level="INFO", sink=sink, log_file=str(log_file), enqueue=False, colorize=False)
        logging.getLogger("aiohttp.access").warning("GET /modpacks 200")
        logger.remove()

        assert "GET /modpacks 200" in sink.getvalue()
        assert "GET /modpacks 200" in log_file.read_text(encoding="utf-8")

    def test_log_file_from_config(self):
        assert ServerConfig.from_dict({"log_file": "modserve.log"}).log_file == "modserve.log"
        assert ServerConfig.from_dict({"log_file": ""}).log_file is None
