"""Tests for terminal redirect parsing."""

from datetime import datetime, timedelta, timezone

import pytest

from deskauth.client.models.flow import ResponseMode
from deskauth.client.services.classifier import NavigationEvent
from deskauth.client.services.results import parse_terminal_result

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


class TestQueryMode:
    def test_code_redirect(self):
        # Act
        result = parse_terminal_result(
            "https://app/cb?code=ABC&state=XYZ", ResponseMode.QUERY
        )

        # Assert
        assert result.parameters == {"code": "ABC", "state": "XYZ"}
        assert result.expiry_datetime is None
        assert not result.is_error()

    def test_default_mode_reads_query(self):
        result = parse_terminal_result(NavigationEvent("https://app/cb?code=ABC#x=1"))

        assert result.parameters == {"code": "ABC"}

    def test_error_redirect_is_returned_as_data(self):
        result = parse_terminal_result(
            "https://app/cb?error=access_denied&error_description=User+said+no"
        )

        assert result.is_error()
        assert result["error"] == "access_denied"
        assert result.get("error_description") == "User said no"

    def test_explicit_query_mode_ignores_fragment(self):
        result = parse_terminal_result("https://app/cb#access_token=T", "query")

        assert result.parameters == {}


class TestFragmentMode:
    def test_fragment_with_expiry(self):
        # Act
        result = parse_terminal_result(
            "https://app/cb#access_token=T&expires_in=3600",
            ResponseMode.FRAGMENT,
            now=NOW,
        )

        # Assert
        assert result.parameters == {"access_token": "T", "expires_in": "3600"}
        assert result.expiry_datetime == NOW + timedelta(seconds=3600)
        assert result.as_dict()["expiry_datetime"] == NOW + timedelta(seconds=3600)

    def test_default_mode_falls_back_to_fragment(self):
        result = parse_terminal_result(
            "https://app/cb#access_token=T&token_type=Bearer&state=S", now=NOW
        )

        assert result["access_token"] == "T"
        assert result["token_type"] == "Bearer"

    def test_non_numeric_expires_in_has_no_expiry(self):
        result = parse_terminal_result(
            "https://app/cb#access_token=T&expires_in=soon", "fragment"
        )

        assert result.expiry_datetime is None
        assert "expiry_datetime" not in result.as_dict()


class TestFormPostMode:
    def test_body_is_parsed(self):
        event = NavigationEvent(
            "https://app/cb",
            body="id_token=eyJ&state=S&expires_in=60",
        )

        result = parse_terminal_result(event, ResponseMode.FORM_POST, now=NOW)

        assert result.parameters == {"id_token": "eyJ", "state": "S", "expires_in": "60"}
        assert result.expiry_datetime == NOW + timedelta(seconds=60)

    def test_missing_body_yields_empty_result(self):
        result = parse_terminal_result(NavigationEvent("https://app/cb"), "form_post")

        assert result.parameters == {}


class TestRepeatability:
    def test_repeated_parsing_is_identical_except_expiry(self):
        capture = NavigationEvent("https://app/cb#access_token=T&expires_in=10")

        first = parse_terminal_result(capture, "fragment")
        second = parse_terminal_result(capture, "fragment")

        assert first.parameters == second.parameters
        assert second.expiry_datetime >= first.expiry_datetime

    def test_blank_values_are_kept(self):
        result = parse_terminal_result("https://app/cb?code=ABC&session_state=")

        assert result.parameters == {"code": "ABC", "session_state": ""}


class TestUnrepresentableExpiry:
    @pytest.mark.parametrize(
        "expires_in", ["99999999999999", "nan", "inf", "-inf", "1e400"]
    )
    def test_expiry_is_omitted_instead_of_failing(self, expires_in):
        # Act
        result = parse_terminal_result(
            f"https://app/cb#access_token=T&expires_in={expires_in}", "fragment"
        )

        # Assert
        assert result["access_token"] == "T"
        assert result["expires_in"] == expires_in
        assert result.expiry_datetime is None

    def test_expiry_past_datetime_max_is_omitted(self):
        near_max = datetime(9999, 12, 31, tzinfo=timezone.utc)

        result = parse_terminal_result(
            "https://app/cb?code=ABC&expires_in=86400", now=near_max
        )

        assert result.expiry_datetime is None
