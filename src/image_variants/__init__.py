"""Byte-budgeted image variants uploaded through presigned URLs."""

__version__ = "0.1.0"
