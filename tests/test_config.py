"""Tests for ClientConfig validation and YAML loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from chatlib.config import ClientConfig, ConfigError, load_config


class TestClientConfig:
    """Tests for ClientConfig."""

    def test_defaults(self) -> None:
        config = ClientConfig(base_url="https://chat.example.org/")

        assert config.base_url == "https://chat.example.org"
        assert config.request_timeout == 10.0
        assert config.connect_timeout == 15.0
        assert config.ping_interval == 20
        assert config.realtime_path == "/realtime"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"base_url": "chat.example.org"},
            {"base_url": "https://chat.example.org", "request_timeout": 0},
            {"base_url": "https://chat.example.org", "connect_timeout": -1},
            {"base_url": "https://chat.example.org", "realtime_path": "realtime"},
        ],
    )
    def test_invalid_values(self, kwargs: dict) -> None:
        with pytest.raises(ConfigError):
            ClientConfig(**kwargs)

    def test_from_dict_rejects_unknown_keys(self) -> None:
        with pytest.raises(ConfigError, match="Unknown config keys: colour"):
            ClientConfig.from_dict({"base_url": "https://x.org", "colour": "red"})

    def test_from_dict_requires_base_url(self) -> None:
        with pytest.raises(ConfigError, match="base_url"):
            ClientConfig.from_dict({"request_timeout": 3})


class TestLoadConfig:
    """Tests for load_config()."""

    def test_top_level_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "chat.yaml"
        path.write_text("base_url: http://localhost:4000\nping_interval: null\n")

        config = load_config(path)

        assert config.base_url == "http://localhost:4000"
        assert config.ping_interval is None

    def test_chat_section(self, tmp_path: Path) -> None:
        path = tmp_path / "app.yaml"
        path.write_text(
            "chat:\n  base_url: https://chat.example.org\n  request_timeout: 2.5\n"
        )

        config = load_config(str(path))

        assert config.request_timeout == 2.5

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Cannot read config file"):
            load_config(tmp_path / "absent.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("base_url: [unclosed\n")

        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(path)

    def test_non_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- one\n- two\n")

        with pytest.raises(ConfigError, match="must contain a mapping"):
            load_config(path)
