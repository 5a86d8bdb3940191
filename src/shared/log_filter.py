import logging
import re
from typing import List, Tuple

# Crawler IPs end up in access logs; keep them out of shipped log lines.
_REPLACEMENTS: List[Tuple[re.Pattern[str], str]] = [
    # IPv4 addresses
    (
        re.compile(
            r"\b(?:(?:25[0-5]|2[0-4]\d|1\d\d|[1-9]?\d)\.){3}"
            r"(?:25[0-5]|2[0-4]\d|1\d\d|[1-9]?\d)\b"
        ),
        "[REDACTED_IP]",
    ),
    # IPv6 addresses, full or "::" compressed
    (
        re.compile(
            r"(?<![\w:])(?:(?:[0-9a-fA-F]{1,4}:){7}[0-9a-fA-F]{1,4}"
            r"|(?:[0-9a-fA-F]{1,4}:){0,6}[0-9a-fA-F]{0,4}::(?:[0-9a-fA-F]{1,4}:?){0,6})"
            r"(?![\w:])"
        ),
        "[REDACTED_IP]",
    ),
]


def mask(message: str) -> str:
    for pattern, repl in _REPLACEMENTS:
        message = pattern.sub(repl, message)
    return message


class SensitiveDataFilter(logging.Filter):
    """Mask client addresses in log messages and structured fields."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = mask(record.getMessage())
        record.args = ()
        extra = getattr(record, "extra_fields", None)
        if isinstance(extra, dict):
            record.extra_fields = {
                k: mask(v) if isinstance(v, str) else v for k, v in extra.items()
            }
        return True
