"""LibreLink Up to Nightscout uploader."""

__version__ = "0.1.0"
