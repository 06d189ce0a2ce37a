"""Tests for check secret generation."""

import re
from unittest.mock import patch

from circmetrics.checkmgr.secret import (
    INSECURE_FALLBACK_SECRET,
    generate_secret,
    make_secret,
)


def test_make_secret_is_16_hex_chars():
    secret = make_secret()

    assert re.fullmatch(r"[0-9a-f]{16}", secret)


def test_make_secret_is_random():
    assert len({make_secret() for _ in range(20)}) == 20


def test_generate_secret():
    result = generate_secret()

    assert result.insecure_fallback is False
    assert len(result.value) == 16


def test_generate_secret_fallback(caplog):
    """Test a broken random source yields the flagged fallback value."""
    with patch(
        "circmetrics.checkmgr.secret.secrets.token_bytes", side_effect=OSError("no entropy")
    ):
        with caplog.at_level("WARNING"):
            result = generate_secret()

    assert result.value == INSECURE_FALLBACK_SECRET
    assert result.insecure_fallback is True
    assert "insecure fallback" in caplog.text
