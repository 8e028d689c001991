"""surface_pruner: trims an API description to what a client should expose."""

__version__ = "0.1.0"
