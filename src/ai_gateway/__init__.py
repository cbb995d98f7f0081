"""Multi-provider AI applications gateway."""

from .config import ChunkingConfig, MemoryConfig, RetrievalConfig, Settings, get_settings

__all__ = ["ChunkingConfig", "MemoryConfig", "RetrievalConfig", "Settings", "get_settings"]
