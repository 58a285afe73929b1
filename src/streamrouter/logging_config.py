import logging
import re
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class SensitiveDataFilter(logging.Filter):
    """Filter to mask sensitive information in logs"""

    PATTERNS = {
        "credential": r"(?:password|passwd|token|secret)\s*[=:]\s*\S+",
        "email": r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}",
    }

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()

        message = re.sub(self.PATTERNS["credential"], "[MASKED_CREDENTIAL]", message, flags=re.IGNORECASE)
        message = re.sub(self.PATTERNS["email"], "[MASKED_EMAIL]", message)

        # IP addresses and upstream names are what this tool is about, keep them

        record.msg = message
        record.args = None
        return True


def setup_logging(
    log_level: str = "INFO",
    mask_sensitive: bool = True,
    log_file: Optional[Path] = None,
):
    """Setup logging with optional sensitive data filtering"""

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))

    # Remove existing handlers to avoid duplication
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    root_logger.addHandler(stream_handler)

    if mask_sensitive:
        # Records from child loggers skip root filters, so handlers get one too
        sensitive_filter = SensitiveDataFilter()
        for handler in root_logger.handlers:
            handler.addFilter(sensitive_filter)
        # Avoid adding filter if it already exists
        if not any(isinstance(f, SensitiveDataFilter) for f in root_logger.filters):
            root_logger.addFilter(sensitive_filter)
