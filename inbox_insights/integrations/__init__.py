# Provider adapters are imported from their subpackages directly so the
# stage layer can depend on the protocol without pulling in any SDK.
from .base import CompletionClient, CompletionMetrics

__all__ = ['CompletionClient', 'CompletionMetrics']
