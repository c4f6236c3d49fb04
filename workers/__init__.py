"""Worker module for async task management"""
from .inflight import InflightRegistry, inflight_registry
from .task_queue import download_semaphore, with_timeout

__all__ = ['InflightRegistry', 'inflight_registry', 'download_semaphore', 'with_timeout']
