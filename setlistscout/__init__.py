"""SetlistScout: predict what an artist will play from their recent setlists."""

__version__ = "0.1.0"
