"""
Encoding-Safe Logging Setup

Configures the root logger for the CLI with a console handler and an
optional UTF-8 file handler. Status symbols used in console messages are
replaced by ASCII equivalents on terminals that cannot render them.
"""

import logging
import os
import platform
import re
from typing import Optional

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class SafeFormatter(logging.Formatter):
    """
    Log formatter with encoding-safe character substitution.

    Substitutes Unicode status symbols with ASCII alternatives when the
    environment has limited encoding support, so console output stays
    readable on every platform.
    """

    SYMBOL_MAP = {
        "✅": "[OK]",
        "✔": "OK",
        "⚠️": "[WARNING]",
        "⚠": "!",
        "❌": "[ERROR]",
        "\U0001f4e7": "[MAIL]",
        "\U0001f50d": "[*]",
        "\U0001f4be": "[SAVED]",
        "→": "->",
        "━": "-",
        "•": "*",
    }

    def __init__(self, fmt: Optional[str] = None, datefmt: Optional[str] = None,
                 force_ascii: Optional[bool] = None):
        super().__init__(fmt, datefmt)
        self.is_windows = platform.system() == "Windows"
        if force_ascii is None:
            force_ascii = os.environ.get("FORCE_ASCII_LOGGING", "0").lower() in ("1", "true", "yes")
        self.force_ascii = force_ascii
        self.limited_encoding = self._has_limited_encoding()

    def _has_limited_encoding(self) -> bool:
        """
        Detect if the current environment has limited encoding support.

        Returns:
            bool: True if symbols should be replaced with ASCII
        """
        if self.force_ascii:
            return True

        if self.is_windows:
            # Windows Terminal renders Unicode fine
            if "WT_SESSION" in os.environ:
                return False
            if os.environ.get("PYTHONIOENCODING", "").lower() == "utf-8":
                return False
            return True

        return False

    def format(self, record: logging.LogRecord) -> str:
        formatted_message = super().format(record)

        if self.limited_encoding:
            for unicode_char, ascii_char in self.SYMBOL_MAP.items():
                formatted_message = formatted_message.replace(unicode_char, ascii_char)

        return formatted_message


class PlainFormatter(logging.Formatter):
    """File formatter that drops ANSI color sequences meant for the terminal."""

    ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*m")

    def format(self, record: logging.LogRecord) -> str:
        return self.ANSI_ESCAPE.sub("", super().format(record))


def configure_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    format_str: str = DEFAULT_FORMAT
) -> logging.Logger:
    """
    Configure the root logger with encoding-safe console and file output.

    Args:
        level: Logging level for the root logger
        log_file: Optional log file path; its directory is created on demand
        format_str: Format string for log records

    Returns:
        logging.Logger: The configured root logger
    """
    logger = logging.getLogger()
    logger.setLevel(level)

    # Avoid duplicate handlers when called more than once
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = SafeFormatter(format_str)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        try:
            log_dir = os.path.dirname(log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)

            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setFormatter(PlainFormatter(format_str))
            logger.addHandler(file_handler)
        except OSError as e:
            logger.warning(f"Failed to create log file handler: {str(e)}")

    # Provider SDKs are chatty at DEBUG
    for noisy in ("httpx", "httpcore", "googleapiclient.discovery_cache", "urllib3"):
        logging.getLogger(noisy).setLevel(max(level, logging.WARNING))

    return logger


def mask_email(email: str) -> str:
    """
    Mask email addresses for privacy in logs.

    Keeps the first and last character of the local part and the first
    character of the domain label, e.g. ``john@example.com`` becomes
    ``j**n@e******.com``. Display-name forms (``Name <addr>``) are masked
    inside the angle brackets.

    Args:
        email: Email address to mask

    Returns:
        Masked email address
    """
    if not email or '@' not in email:
        return email

    if '<' in email and email.endswith('>'):
        display, address = email[:-1].split('<', 1)
        return f"{display}<{mask_email(address.strip())}>"

    try:
        username, domain = email.split('@', 1)
        if len(username) <= 2:
            masked_username = '*' * len(username)
        else:
            masked_username = username[0] + '*' * (len(username) - 2) + username[-1]

        domain_parts = domain.split('.')
        masked_domain = domain_parts[0][0] + '*' * (len(domain_parts[0]) - 1)

        return f"{masked_username}@{masked_domain}.{'.'.join(domain_parts[1:])}"
    except (IndexError, ValueError):
        return "***@***.***"
