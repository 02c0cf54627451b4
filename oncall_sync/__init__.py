"""Declarative on-call synchronisation, roster exporting and SLA probing."""

__version__ = "1.0.0"
