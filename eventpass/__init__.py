"""Event pass artifacts: unique codes, QR encoding, card layout/rendering and PDF packaging."""

__version__ = "1.0.0"
