"""Unit tests for the CLI context builder."""

import pytest
from unittest.mock import patch
from sealstream.core.exceptions import InvalidPasswordError, UnsupportedAlgorithmError
from sealstream.core.models import Algorithm
from sealstream.frontend.cli.context import (
    ALGORITHM_ENV,
    LOG_LEVEL_ENV,
    PASSWORD_ENV,
    build_context,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Make sure no SEALSTREAM_* variables leak in from the host."""
    for name in (PASSWORD_ENV, ALGORITHM_ENV, LOG_LEVEL_ENV):
        monkeypatch.delenv(name, raising=False)


def test_explicit_arguments():
    ctx = build_context(password="pw", algorithm="rc2", log_level="debug")
    assert ctx.algorithm is Algorithm.RC2
    assert ctx.encryption.algorithm is Algorithm.RC2
    assert ctx.log_level == "DEBUG"


def test_defaults():
    ctx = build_context(password="pw")
    assert ctx.algorithm is Algorithm.AES
    assert ctx.log_level == "WARNING"


def test_environment_fallbacks(monkeypatch):
    monkeypatch.setenv(PASSWORD_ENV, "from-env")
    monkeypatch.setenv(ALGORITHM_ENV, "triple_des")
    monkeypatch.setenv(LOG_LEVEL_ENV, "info")

    ctx = build_context()
    assert ctx.algorithm is Algorithm.TRIPLE_DES
    assert ctx.log_level == "INFO"

    token = ctx.encryption.encrypt_value("x")
    assert build_context(password="from-env").encryption.decrypt_value(token, str) == "x"


def test_arguments_override_environment(monkeypatch):
    monkeypatch.setenv(ALGORITHM_ENV, "des")
    ctx = build_context(password="pw", algorithm="aes")
    assert ctx.algorithm is Algorithm.AES


def test_prompts_when_no_password():
    with patch("sealstream.frontend.cli.context.getpass.getpass", return_value="typed") as prompt:
        ctx = build_context()
    prompt.assert_called_once()
    token = ctx.encryption.encrypt_value(1)
    assert build_context(password="typed").encryption.decrypt_value(token, int) == 1


def test_no_prompt_and_no_password_is_rejected():
    with patch("sealstream.frontend.cli.context.getpass.getpass") as prompt:
        with pytest.raises(InvalidPasswordError):
            build_context(prompt=False)
    prompt.assert_not_called()


def test_bad_algorithm(monkeypatch):
    monkeypatch.setenv(ALGORITHM_ENV, "enigma")
    with pytest.raises(UnsupportedAlgorithmError):
        build_context(password="pw")
