"""Packet probing building blocks and a small arbitrary-precision integer library."""

__version__ = "0.1.0"