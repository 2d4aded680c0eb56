from pathlib import Path

import pytest

from calloutbot.config import (
    ENV_API_TOKEN,
    ENV_BOT_TOKEN,
    BotSettings,
    ConfigError,
    load_config,
    load_settings,
    validate_settings_data,
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in (ENV_BOT_TOKEN, ENV_API_TOKEN, "CALLOUTBOT_SERVICE_SECRET"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("calloutbot.config.HOME_CONFIG_PATH", tmp_path / "home.toml")


class TestLoadConfig:
    def test_load_from_explicit_path(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.toml"
        config_file.write_text('bot_token = "1:abc"\napi_token = "t"\n')

        config, path = load_config(config_file)

        assert config["bot_token"] == "1:abc"
        assert path == config_file

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Missing config file"):
            load_config(tmp_path / "nonexistent.toml")

    def test_malformed_toml_raises(self, tmp_path: Path) -> None:
        bad_file = tmp_path / "bad.toml"
        bad_file.write_text("invalid = [unclosed")
        with pytest.raises(ConfigError, match="Malformed TOML"):
            load_config(bad_file)

    def test_directory_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Failed to read"):
            load_config(tmp_path)

    def test_local_config_is_discovered(self, tmp_path: Path) -> None:
        local = tmp_path / ".calloutbot" / "calloutbot.toml"
        local.parent.mkdir()
        local.write_text('site_url = "https://example.org"\n')
        config, path = load_config()
        assert config == {"site_url": "https://example.org"}
        assert path == tmp_path / ".calloutbot" / "calloutbot.toml"

    def test_no_default_config(self) -> None:
        assert load_config() == ({}, None)


class TestSettings:
    def test_defaults(self) -> None:
        settings = BotSettings(bot_token="1:abc", api_token="t")
        assert settings.watched_content == ["general"]
        assert settings.callout_list_limit == 10
        assert settings.webhook_port is None

    def test_environment_overrides_file(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(ENV_BOT_TOKEN, " 9:env ")
        settings = validate_settings_data({"bot_token": "1:file", "api_token": "t"}, None)
        assert settings.bot_token == "9:env"

    def test_missing_tokens_mention_env_vars(self) -> None:
        with pytest.raises(ConfigError) as exc:
            validate_settings_data({}, None)
        message = str(exc.value)
        assert "environment" in message
        assert ENV_BOT_TOKEN in message
        assert ENV_API_TOKEN in message

    def test_unknown_key_is_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="`unknown`"):
            validate_settings_data(
                {"bot_token": "1:a", "api_token": "t", "unknown": 1}, tmp_path / "c.toml"
            )

    def test_blank_token_is_rejected(self) -> None:
        with pytest.raises(ConfigError, match="non-empty"):
            validate_settings_data({"bot_token": "  ", "api_token": "t"}, None)

    def test_load_settings_from_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / "calloutbot.toml"
        config_file.write_text(
            'bot_token = "1:abc"\napi_token = "t"\nwebhook_port = 3003\n'
            '[strings]\n"bot.keyboard.label.yes" = "Ja"\n'
        )
        settings = load_settings(config_file)
        assert settings.webhook_port == 3003
        assert settings.strings == {"bot.keyboard.label.yes": "Ja"}
