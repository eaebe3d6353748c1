"""Shared utilities — config loading, logging, helpers."""

from veritas.utils.helpers import load_config, setup_logging, now_ms, format_percentage
from veritas.utils.ring_buffer import RingBuffer

__all__ = ["load_config", "setup_logging", "now_ms", "format_percentage", "RingBuffer"]
