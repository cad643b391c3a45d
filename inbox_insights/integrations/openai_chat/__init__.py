from .client import OpenAIChatClient

__all__ = ['OpenAIChatClient']
