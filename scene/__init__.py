"""Scene: artist image resolution and artist search for a concert-logging app."""

__version__ = "0.1.0"
