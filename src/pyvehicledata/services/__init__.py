"""Service layer.

Each service implements one inbound operation on top of the shared
transport, credential cache, fan-out fetcher and response cache.
"""

__all__: list[str] = []
