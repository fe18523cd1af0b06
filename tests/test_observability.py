import logging
import os
from unittest.mock import patch

from infrastructure import observability


def test_scrub_masks_secrets_in_frames_and_request():
    event = {
        "exception": {
            "values": [
                {"stacktrace": {"frames": [{"vars": {"password": "hunter2", "code": "123456", "note": "sent 654321"}}]}}
            ]
        },
        "request": {"data": {"client_secret": "s3cr3t", "email": "a@example.com"}},
    }

    scrubbed = observability._scrub_sensitive_data(event, {})

    frame_vars = scrubbed["exception"]["values"][0]["stacktrace"]["frames"][0]["vars"]
    assert frame_vars["password"] == "[REDACTED]"
    assert frame_vars["code"] == "[REDACTED]"
    assert frame_vars["note"] == "sent [REDACTED]"
    assert scrubbed["request"]["data"]["client_secret"] == "[REDACTED]"
    assert scrubbed["request"]["data"]["email"] == "a@example.com"


@patch("sentry_sdk.init")
def test_sentry_initialised_with_dsn(mock_init):
    with patch.dict(os.environ, {"SENTRY_DSN": "https://key@o0.ingest.sentry.io/0", "SENTRY_ENV": "test"}):
        observability.setup_observability()

    mock_init.assert_called_once()
    kwargs = mock_init.call_args[1]
    assert kwargs["environment"] == "test"
    assert kwargs["before_send"] is observability._scrub_sensitive_data


@patch("sentry_sdk.init")
def test_sentry_skipped_without_dsn(mock_init):
    with patch.dict(os.environ, {}, clear=True):
        observability.setup_observability()
    mock_init.assert_not_called()


def test_redacting_filter_masks_codes_in_log_messages():
    record = logging.LogRecord("identity", logging.INFO, __file__, 1, "code %s accepted", ("123456",), None)

    assert observability.RedactingFilter().filter(record)
    assert record.getMessage() == "code [REDACTED] accepted"
