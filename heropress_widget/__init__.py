"""HeroPress recent essays widget."""

__version__ = "1.1.0"
