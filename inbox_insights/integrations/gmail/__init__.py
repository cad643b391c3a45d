from .auth_manager import GmailAuthenticationManager
from .client import GmailClient

__all__ = ['GmailAuthenticationManager', 'GmailClient']
