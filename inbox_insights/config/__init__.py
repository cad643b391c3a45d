"""
Configuration package: validated runtime settings and static stage parameters.
"""

from .analyzer_config import ANALYZER_CONFIG
from .settings import AppSettings, load_settings

__all__ = [
    'ANALYZER_CONFIG',
    'AppSettings',
    'load_settings'
]
