"""Log buffering module for batched transmission."""

from .log_buffer import BufferConfig, LogBuffer

__all__ = ["LogBuffer", "BufferConfig"]
