"""Search-result snippet crawler with page content alignment."""

__version__ = "0.1.0"

__all__ = ["__version__"]
