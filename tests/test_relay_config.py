"""Tests for loading and validating the relay YAML document."""

from pathlib import Path

import pytest

from app.core.errors import ConfigurationAppError
from app.core.relay_config import expand_env, load_relay_config, parse_relay_config


class TestExpandEnv:
    def test_replaces_placeholders(self) -> None:
        assert expand_env("a=${A} b=${B}", {"A": "1", "B": "2"}) == "a=1 b=2"

    def test_unset_variable_expands_to_empty(self) -> None:
        assert expand_env("x=${MISSING}!", {}) == "x=!"

    def test_unterminated_placeholder_is_left_untouched(self) -> None:
        assert expand_env("x=${OPEN", {"OPEN": "nope"}) == "x=${OPEN"

    def test_plain_dollar_is_left_untouched(self) -> None:
        assert expand_env("cost: $5", {}) == "cost: $5"

    def test_defaults_to_process_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RELAY_TEST_TOKEN", "from-env")
        assert expand_env("${RELAY_TEST_TOKEN}") == "from-env"


class TestParseRelayConfig:
    def test_applies_server_defaults(self) -> None:
        config = parse_relay_config(
            "routes:\n  - {path: /contact, bot_token: t, chat_id: c}\n", environ={}
        )

        assert config.server.port == 8080
        assert config.server.rate_limit == "1/m"
        assert config.server.allowed_origins == "*"

    def test_route_inherits_server_rate_limit(self) -> None:
        config = parse_relay_config(
            """
server:
  rate_limit: "3/h"
routes:
  - {path: /a, bot_token: t, chat_id: c}
  - {path: /b, bot_token: t, chat_id: c, rate_limit: "5/m"}
""",
            environ={},
        )

        assert [r.rate_limit for r in config.routes] == ["3/h", "5/m"]

    def test_empty_strings_fall_back_to_defaults(self) -> None:
        config = parse_relay_config(
            """
server:
  port: 0
  rate_limit: ""
  allowed_origins: ""
routes:
  - {path: /a, bot_token: t, chat_id: c, rate_limit: ""}
""",
            environ={},
        )

        assert config.server.port == 8080
        assert config.server.allowed_origins == "*"
        assert config.routes[0].rate_limit == "1/m"

    def test_expands_environment_placeholders(self) -> None:
        config = parse_relay_config(
            "routes:\n  - {path: /a, bot_token: '${BOT}', chat_id: '${CHAT}'}\n",
            environ={"BOT": "123:secret", "CHAT": "-100"},
        )

        assert config.routes[0].bot_token == "123:secret"
        assert config.routes[0].chat_id == "-100"

    def test_numeric_chat_id_is_coerced_to_string(self) -> None:
        config = parse_relay_config(
            "routes:\n  - {path: /a, bot_token: t, chat_id: -1001234567890}\n", environ={}
        )

        assert config.routes[0].chat_id == "-1001234567890"

    @pytest.mark.parametrize(
        "route, field",
        [
            ("{bot_token: t, chat_id: c}", "path"),
            ("{path: /a, chat_id: c}", "bot_token"),
            ("{path: /a, bot_token: t}", "chat_id"),
            ("{path: /a, bot_token: '', chat_id: c}", "bot_token"),
        ],
    )
    def test_missing_route_field_is_rejected(self, route: str, field: str) -> None:
        with pytest.raises(ConfigurationAppError) as exc_info:
            parse_relay_config(f"routes:\n  - {route}\n", environ={})

        assert exc_info.value.code == "config_route_missing_field"
        assert f"{field} is required" in exc_info.value.message

    @pytest.mark.parametrize("path", ["contact", "api/contact"])
    def test_relative_route_path_is_rejected(self, path: str) -> None:
        with pytest.raises(ConfigurationAppError) as exc_info:
            parse_relay_config(f"routes:\n  - {{path: {path}, bot_token: t, chat_id: c}}\n", environ={})

        assert exc_info.value.code == "config_invalid_route_path"
        assert exc_info.value.details["route"] == path

    def test_token_from_unset_variable_is_rejected(self) -> None:
        with pytest.raises(ConfigurationAppError) as exc_info:
            parse_relay_config(
                "routes:\n  - {path: /a, bot_token: '${UNSET_TOKEN}', chat_id: c}\n",
                environ={},
            )

        assert "bot_token is required" in exc_info.value.message

    @pytest.mark.parametrize("text", ["", "server:\n  port: 9000\n", "routes: []\n", "routes:\n"])
    def test_zero_routes_is_rejected(self, text: str) -> None:
        with pytest.raises(ConfigurationAppError) as exc_info:
            parse_relay_config(text, environ={})

        assert exc_info.value.code == "config_no_routes"

    def test_malformed_yaml_is_rejected(self) -> None:
        with pytest.raises(ConfigurationAppError) as exc_info:
            parse_relay_config("routes: [unclosed\n", environ={})

        assert exc_info.value.code == "config_parse_error"

    @pytest.mark.parametrize("text", ["- just\n- a list\n", "routes: not-a-list\n", "server: 5\n"])
    def test_wrong_document_shape_is_rejected(self, text: str) -> None:
        with pytest.raises(ConfigurationAppError) as exc_info:
            parse_relay_config(text, environ={})

        assert exc_info.value.code == "config_invalid_document"


class TestLoadRelayConfig:
    def test_loads_file(self, tmp_path: Path) -> None:
        path = tmp_path / "relay.yaml"
        path.write_text(
            "routes:\n  - {path: /contact, bot_token: t, chat_id: c}\n", encoding="utf-8"
        )

        config = load_relay_config(path)

        assert [r.path for r in config.routes] == ["/contact"]

    def test_unreadable_file_is_a_configuration_error(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationAppError) as exc_info:
            load_relay_config(tmp_path / "missing.yaml")

        assert exc_info.value.code == "config_unreadable"
