"""diskmap - map where your disk space went."""

__version__ = "0.1.0"
