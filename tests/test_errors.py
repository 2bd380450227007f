import pytest
import requests

from core.errors import NetworkError, NotFoundError, classify_exception, user_message


@pytest.mark.parametrize(
    "exc, kind",
    [
        (NetworkError("GET x returned HTTP 401", status_code=401), "auth"),
        (NetworkError("GET x returned HTTP 404", status_code=404), "not_found"),
        (NetworkError("GET x returned HTTP 429", status_code=429), "rate_limited"),
        (NetworkError("GET x returned HTTP 503", status_code=503), "server"),
        (NetworkError("GET x failed: read timed out"), "network"),
        (NotFoundError("no match"), "not_found"),
        (requests.ConnectionError("connection refused"), "network"),
        (ValueError("Expecting value: could not decode JSON"), "parse"),
        (ZeroDivisionError("division by zero"), "unknown"),
    ],
)
def test_classify_exception(exc, kind):
    assert classify_exception(exc) == kind


def test_user_message_contexts():
    assert user_message("unknown", "lyrics") == "Error loading lyrics."
    assert user_message("auth", "playback") == "Spotify session expired. Please login again."
    assert user_message("not_found", "video") == "No video available for this track."
    # unknown kinds fall back to the context's generic message
    assert user_message("weird", "playback") == "Playback command failed."
    assert user_message("network", "other") == "Operation failed. Please retry."
