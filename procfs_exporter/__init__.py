"""Prometheus exporter for /proc system metrics and allocator benchmark results"""

__version__ = "1.0.0"
