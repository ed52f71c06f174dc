from pathlib import Path
from unittest import mock

import pytest
import tomllib

from resserver_client import Configurator
from resserver_client.client import ResServer
from resserver_client.core.exceptions import InsecureUrlError


@pytest.fixture
def fresh_env(monkeypatch, tmp_path):
    # no local config.toml and no leftover settings from the environment
    monkeypatch.chdir(tmp_path)
    for key in ("RESSERVER_SETTINGS", "RESSERVER_URL", "LOG_QUERIES", "SENTRY_SAMPLE_RATE"):
        monkeypatch.delenv(key, raising=False)


def test_default_config(fresh_env):
    config = Configurator()

    assert config.QUERY_PATH == "query"
    assert config.UPLOAD_PATH == "upload"
    assert config.CONTENT_TYPE == "text/xml"
    assert config.LOG_QUERIES is False

    # Make sure all config keys are defined
    with open(
        Path(__file__).parent.parent / "resserver_client/config_default.toml", "rb"
    ) as f:
        assert config.configuration.keys() == tomllib.load(f).keys()


def test_custom_config_file_override(fresh_env, monkeypatch, tmp_path):
    settings = tmp_path / "custom.toml"
    settings.write_text('RESSERVER_URL = "https://res.example.org"\nQUERY_PATH = "/v2/query/"\n')
    monkeypatch.setenv("RESSERVER_SETTINGS", str(settings))
    config = Configurator()

    assert config.RESSERVER_URL == "https://res.example.org"
    assert config.QUERY_PATH == "v2/query"


def test_env_override(fresh_env, monkeypatch):
    monkeypatch.setenv("RESSERVER_URL", "https://example.com")
    monkeypatch.setenv("LOG_QUERIES", "yes")
    monkeypatch.setenv("SENTRY_SAMPLE_RATE", "0.25")
    config = Configurator()

    assert config.RESSERVER_URL == "https://example.com"
    assert config.LOG_QUERIES is True
    assert config.SENTRY_SAMPLE_RATE == 0.25


def test_insecure_url_refused_when_connecting(fresh_env, monkeypatch):
    monkeypatch.setenv("RESSERVER_URL", "http://example.com")
    # loading the settings never fails, an explicit https url still works
    config = Configurator()
    assert config.RESSERVER_URL == "http://example.com"
    with mock.patch("resserver_client.client.config", config):
        with pytest.raises(InsecureUrlError):
            ResServer()
        assert ResServer("https://res.example.org").url == "https://res.example.org/"
