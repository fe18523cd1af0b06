"""
Logging and Sentry setup for the identity host.
Configured from environment variables only: LOG_LEVEL, SENTRY_DSN,
SENTRY_ENV and SENTRY_TRACES_SAMPLE_RATE.
"""

import os
import logging
import re
from typing import Any, Dict

log = logging.getLogger(__name__)

REDACTED = "[REDACTED]"

# Tokens, and one-time codes from passwordless login and deep links
SENSITIVE_PATTERNS = [
    re.compile(r"[a-zA-Z0-9_\-\.]{30,}"),
    re.compile(r"\b\d{6}\b"),
]
SENSITIVE_KEYS = {"password", "code", "access_token", "refresh_token", "client_secret", "_tokens"}

LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"
NOISY_LOGGERS = ("urllib3", "requests")


def _mask_string(val: str) -> str:
    for pattern in SENSITIVE_PATTERNS:
        val = pattern.sub(REDACTED, val)
    return val


def _recursive_scrub(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {k: REDACTED if str(k).lower() in SENSITIVE_KEYS else _recursive_scrub(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_recursive_scrub(i) for i in obj]
    if isinstance(obj, str):
        return _mask_string(obj)
    return obj


def _scrub_sensitive_data(event: Dict[str, Any], hint: Dict[str, Any]) -> Dict[str, Any]:
    """
    Sentry before_send hook. Masks credentials in stacktrace locals
    and request data before the event leaves the process.
    """
    for exc in event.get("exception", {}).get("values", []):
        for frame in exc.get("stacktrace", {}).get("frames", []):
            if "vars" in frame:
                frame["vars"] = _recursive_scrub(frame["vars"])
    if "request" in event:
        event["request"] = _recursive_scrub(event["request"])
    return event


class RedactingFilter(logging.Filter):
    """Masks tokens and one-time codes in formatted log messages."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = _mask_string(record.getMessage())
        record.args = ()
        return True


def _init_sentry(dsn: str) -> None:
    import sentry_sdk

    environment = os.getenv("SENTRY_ENV", "development")
    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        traces_sample_rate=float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.0")),
        send_default_pii=False,
        before_send=_scrub_sensitive_data,
    )
    log.info(f"Sentry SDK initialized (env: {environment})")


def setup_observability() -> None:
    """
    Configures root logging and, when SENTRY_DSN is set, Sentry.
    Call once at application startup.
    """
    level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, RedactingFilter) for f in handler.filters):
            handler.addFilter(RedactingFilter())

    sentry_dsn = os.getenv("SENTRY_DSN")
    if sentry_dsn:
        _init_sentry(sentry_dsn)
    else:
        log.info("SENTRY_DSN not provided. Running without Sentry.")

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
