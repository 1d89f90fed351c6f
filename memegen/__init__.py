"""Activity memes: Strava telemetry in, captioned duck meme out."""

__version__ = "0.1.0"
