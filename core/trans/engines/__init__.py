"""Provider adapter implementations.

Importing this package registers the adapters with ProviderAdapter, so provider descriptors
can select them by name.

Modules:
- HttpProviderAdapter: Table-driven adapter for JSON-over-HTTP translation providers.
"""

from core.trans.engines.http_provider import HttpProviderAdapter, extract_path

__all__: list[str] = ["HttpProviderAdapter", "extract_path"]
