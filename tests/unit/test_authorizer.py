"""
Unit tests for shared-secret token checks.

Includes a property-based test: a token is accepted exactly when it is
byte-for-byte equal to the configured secret.
"""

import logging

import pytest
from hypothesis import given, strategies as st

from auth.tokens import authorize, require_token
from errors.codes import ErrorCode
from errors.exceptions import AppException

SECRET = "embedded-secret-123"


class TestAuthorize:
    """Tests for the authorize function."""

    def test_exact_match_is_accepted(self):
        assert authorize(SECRET, SECRET) is True

    def test_missing_token_is_rejected(self):
        assert authorize(None, SECRET) is False

    def test_empty_token_is_rejected(self):
        assert authorize("", SECRET) is False

    @pytest.mark.parametrize("presented", [
        SECRET.upper(),
        f" {SECRET}",
        f"{SECRET} ",
        f"{SECRET}\n",
        SECRET[:-1],
        SECRET + "4",
    ])
    def test_no_normalization(self, presented):
        """Test that case, whitespace and length differences never match."""
        assert authorize(presented, SECRET) is False

    def test_non_ascii_secret_compares_on_utf8_bytes(self):
        assert authorize("clé-secrète", "clé-secrète") is True
        assert authorize("cle-secrete", "clé-secrète") is False

    @given(presented=st.text(), expected=st.text(min_size=1))
    def test_accepts_exactly_when_equal(self, presented, expected):
        """Property: acceptance is equivalent to string equality."""
        assert authorize(presented, expected) == (presented == expected)


class TestRequireToken:
    """Tests for the require_token guard."""

    def test_matching_token_passes(self):
        require_token(SECRET, SECRET, route="data")

    def test_missing_token_raises_authorization_failure(self, caplog):
        with caplog.at_level(logging.WARNING, logger="auth.tokens"):
            with pytest.raises(AppException) as exc_info:
                require_token(None, SECRET, route="data")

        assert exc_info.value.error_code == ErrorCode.AUTHORIZATION_FAILURE
        assert exc_info.value.status_code == 401
        assert exc_info.value.details == {"route": "data", "reason": "missing_token"}
        assert caplog.records[-1].extra_data["reason"] == "missing_token"

    def test_mismatch_is_logged_without_the_token(self, caplog):
        with caplog.at_level(logging.WARNING, logger="auth.tokens"):
            with pytest.raises(AppException) as exc_info:
                require_token("guess-123", SECRET, route="gps")

        assert exc_info.value.details["reason"] == "token_mismatch"
        assert "guess-123" not in caplog.text
        assert SECRET not in caplog.text
