"""nado-mm: two-sided quoting bot for the Nado perpetuals exchange."""

__version__ = "0.1.0"
