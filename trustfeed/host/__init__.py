from .memory import MemoryFeed, MemoryFeedHost, replicate

__all__ = ["MemoryFeed", "MemoryFeedHost", "replicate"]
