"""Multi-disk storage pool: index, Solid rules and placement planning."""

__version__ = "0.1.0"