"""Execution contexts for the shipper's timer and deferred work."""

from .threading_host import Host, ThreadingHost

__all__ = ["Host", "ThreadingHost"]
