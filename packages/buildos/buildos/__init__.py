"""BuildOS — file-artifact build graphs with typed tools and an event log."""

__version__ = "0.1.0"
