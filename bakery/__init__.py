"""Order creation workflow for the bakery distribution backend."""

__version__ = "0.1.0"
