import configparser

import pytest
from pydantic import ValidationError

from vshelp_cli.api.proxy import ProxySettings
from vshelp_cli.exceptions import ConfigurationError
from vshelp_cli.models.config import DEFAULT_CATALOG_BASE_URL, AppConfig
from vshelp_cli.storage.config_manager import ConfigManager


def make_config(**overrides) -> AppConfig:
    values = {"cache_directory": "/tmp/MSDN Library", "config_path": "/tmp"}
    values.update(overrides)
    return AppConfig(**values)


@pytest.fixture
def config_file(tmp_path):
    return tmp_path / "vshelp-cli" / "config.ini"


def test_missing_file_uses_defaults(config_file):
    config = ConfigManager(config_file).load_config()

    assert config.vs_version == "visualstudio11"
    assert config.catalog_base_url == DEFAULT_CATALOG_BASE_URL
    assert config.cache_directory.endswith("MSDN Library")
    assert config.max_attempts == 3
    assert not config_file.exists()


def test_save_and_load_round_trip(config_file, tmp_path):
    manager = ConfigManager(config_file)
    manager.save_new_config(
        {"cache_directory": str(tmp_path / "cache"), "vs_version": "DEV14", "locale": "en-us"}
    )

    config = ConfigManager(config_file).load_config()

    assert config.cache_directory == str(tmp_path / "cache")
    assert config.vs_version == "dev14"
    assert config.locale == "en-us"
    assert config.config_path == str(config_file.parent)


def test_cli_options_override_file(config_file):
    ConfigManager(config_file).save_new_config({"locale": "en-us"})

    config = ConfigManager(config_file).load_config({"locale": "de-de"})

    assert config.locale == "de-de"


def test_invalid_settings_are_not_saved(config_file):
    with pytest.raises(ConfigurationError):
        ConfigManager(config_file).save_new_config({"vs_version": "vs2099"})
    assert not config_file.exists()


def test_invalid_file_value_is_reported(config_file):
    config_file.parent.mkdir(parents=True)
    config_file.write_text("[DEFAULT]\nmax_attempts = many\n", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="max_attempts"):
        ConfigManager(config_file).load_config()


def test_missing_keys_are_migrated(config_file):
    config_file.parent.mkdir(parents=True)
    config_file.write_text("[DEFAULT]\nlocale = fr-fr\n", encoding="utf-8")

    config = ConfigManager(config_file).load_config()

    assert config.locale == "fr-fr"
    parser = configparser.ConfigParser(interpolation=None)
    parser.read(config_file, encoding="utf-8")
    assert parser["DEFAULT"]["vs_version"] == "visualstudio11"
    assert "proxy_address" in parser["DEFAULT"]


def test_base_urls_get_trailing_slash():
    config = make_config(packages_base_url="https://mirror.example.com/help")
    assert config.packages_base_url == "https://mirror.example.com/help/"


@pytest.mark.parametrize(
    "overrides",
    [
        {"cache_directory": ""},
        {"vs_version": "vs2099"},
        {"max_attempts": 0},
        {"catalog_base_url": "ftp://example.com/"},
        {"proxy_login": "alice"},
        {"proxy_address": "proxy:8080"},
    ],
)
def test_invalid_values_are_rejected(overrides):
    with pytest.raises(ValidationError):
        make_config(**overrides)


def test_ini_keys_exclude_internal_fields():
    keys = AppConfig.get_ini_keys()
    assert "config_path" not in keys
    assert {"cache_directory", "proxy_domain"} <= keys


def test_no_proxy_configured():
    assert ProxySettings.from_config(make_config()) is None


def test_proxy_without_credentials():
    proxy = ProxySettings.from_config(make_config(proxy_address="http://proxy:8080"))

    assert proxy.request_kwargs() == {"proxy": "http://proxy:8080"}


def test_proxy_credentials_are_domain_qualified():
    config = make_config(
        proxy_address="http://proxy:8080",
        proxy_login="alice",
        proxy_password="secret",
        proxy_domain="CORP",
    )

    kwargs = ProxySettings.from_config(config).request_kwargs()

    assert kwargs["proxy"] == "http://proxy:8080"
    assert kwargs["proxy_auth"].login == "CORP\\alice"
    assert kwargs["proxy_auth"].password == "secret"
