from .console import ConsoleReporter, colorize_priority
from .logging_setup import PlainFormatter, SafeFormatter, configure_logging, mask_email

__all__ = [
    'ConsoleReporter',
    'colorize_priority',
    'PlainFormatter',
    'SafeFormatter',
    'configure_logging',
    'mask_email'
]
