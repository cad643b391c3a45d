from .date_service import EmailDateService

__all__ = ['EmailDateService']
