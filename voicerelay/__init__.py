"""Voice relay: ESP32 speech in, spoken assistant replies out."""

__version__ = "1.0.0"
