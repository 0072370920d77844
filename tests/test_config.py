# Precog Client
# File: tests/test_config.py
# Version: v1

import pytest

from precog_client.config import DEFAULT_ENDPOINT, ClientConfig
from precog_client.errors import InvalidArgumentError
from precog_client.models import QueryOptions, SortOrder


def _clear_env(monkeypatch) -> None:
    for name in (
        "PRECOG_ENDPOINT",
        "PRECOG_API_KEY",
        "PRECOG_BASE_PATH",
        "PRECOG_VERIFY_TLS",
        "PRECOG_TIMEOUT_SECONDS",
        "PRECOG_MOCK_MODE",
    ):
        monkeypatch.delenv(name, raising=False)


def test_base_path_canonicalized_on_construction() -> None:
    assert ClientConfig(endpoint="https://x", api_key="k", base_path="/").base_path == ""
    assert ClientConfig(endpoint="https://x", api_key="k", base_path="/a//b/").base_path == "/a/b"
    assert ClientConfig(endpoint="https://x/", api_key="k").endpoint == "https://x"


@pytest.mark.parametrize("key", [None, ""])
def test_api_key_required(key) -> None:
    with pytest.raises(InvalidArgumentError):
        ClientConfig(endpoint="https://x", api_key=key)


def test_config_is_immutable() -> None:
    cfg = ClientConfig(endpoint="https://x", api_key="k")
    with pytest.raises(AttributeError):
        cfg.api_key = "other"  # type: ignore[misc]


def test_from_env(monkeypatch) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("PRECOG_API_KEY", "env-key")
    monkeypatch.setenv("PRECOG_BASE_PATH", "0000000007")
    monkeypatch.setenv("PRECOG_VERIFY_TLS", "no")
    monkeypatch.setenv("PRECOG_TIMEOUT_SECONDS", "99999")

    cfg = ClientConfig.from_env()

    assert cfg.endpoint == DEFAULT_ENDPOINT
    assert cfg.api_key == "env-key"
    assert cfg.base_path == "/0000000007"
    assert cfg.verify_tls is False
    assert cfg.timeout_seconds == 3600.0
    assert cfg.mock_mode is False


def test_from_env_no_timeout_by_default(monkeypatch) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("PRECOG_API_KEY", "env-key")
    assert ClientConfig.from_env().timeout_seconds is None


def test_from_env_mock_mode_needs_no_key(monkeypatch) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("PRECOG_MOCK_MODE", "1")
    cfg = ClientConfig.from_env()
    assert cfg.mock_mode is True
    assert cfg.api_key


def test_query_options_validation() -> None:
    opts = QueryOptions()
    assert opts.limit == 0 and opts.skip == 0
    assert opts.sort_order is SortOrder.ASCENDING

    with pytest.raises(InvalidArgumentError):
        opts.limit = -1
    with pytest.raises(InvalidArgumentError):
        opts.skip = -5
    with pytest.raises(InvalidArgumentError):
        QueryOptions(limit=-1)

    opts.sort_on = ("a", "b.c")
    assert opts.sort_on == ["a", "b.c"]


def test_config_repr_hides_api_key() -> None:
    config = ClientConfig(endpoint="https://x.test", api_key="hidden-key")

    assert "hidden-key" not in repr(config)
