"""Sample Buddy: barcode-driven laboratory sample archive."""

__version__ = "1.0.0"
