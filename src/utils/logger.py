import io
import logging
import re
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from datetime import datetime
from typing import Optional

# "Key: abc", "'Sign': 'abc'", "api_secret=abc" ...
_SECRET_RE = re.compile(
    r"""(?P<name>\b(?:Key|Sign|api_key|api_secret|secret)\b['"]?\s*[:=]\s*['"]?)(?P<value>[^\s'",}&]+)""",
    re.IGNORECASE,
)


class DotMsFormatter(logging.Formatter):
    def formatTime(self, record, datefmt=None):
        ct = datetime.fromtimestamp(record.created)
        if datefmt:
            s = ct.strftime(datefmt.replace('%f', f'{int(record.msecs):03d}'))
        else:
            s = ct.strftime("%Y-%m-%d %H:%M:%S") + f".{int(record.msecs):03d}"
        return s


def mask_secrets(text: str) -> str:
    """Keep the first 4 characters of credential-looking values."""
    return _SECRET_RE.sub(lambda m: m.group("name") + m.group("value")[:4] + "****", text)


class SecretMaskingFilter(logging.Filter):
    """Masks API keys and signatures in the rendered message."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = mask_secrets(message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


def setup_logger(
    name: str,
    log_path: Optional[str | Path] = None,
    level: int = logging.INFO,
) -> logging.Logger:
    """
    Console logger with optional rotating file output.

    Calling it twice for the same *name* does not stack handlers.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    if logger.handlers:
        return logger

    formatter = DotMsFormatter(
        '[%(asctime)s] %(levelname)s %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S.%f'
    )
    secret_filter = SecretMaskingFilter()

    # Console handler; UTF-8 so non-ASCII currency names don't fail on cp1252 consoles.
    if hasattr(sys.stdout, "buffer"):
        stream = io.TextIOWrapper(sys.stdout.buffer, encoding="utf-8", errors="replace")
    else:
        stream = sys.stdout
    ch = logging.StreamHandler(stream)
    ch.setFormatter(formatter)
    ch.addFilter(secret_filter)
    logger.addHandler(ch)

    if log_path is not None:
        log_path = Path(log_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(log_path, maxBytes=5_000_000, backupCount=5, encoding="utf-8")
        fh.setFormatter(formatter)
        fh.addFilter(secret_filter)
        logger.addHandler(fh)

    return logger
