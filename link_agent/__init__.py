"""MAAS network interface link agent."""

__version__ = "1.0.0"
