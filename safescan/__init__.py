"""SafeScan: threat classification for URLs scanned from QR codes."""

__version__ = "1.0"
