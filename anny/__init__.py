"""Discord bot building blocks: slash commands, per-guild music players, song providers, lyrics and a player status API."""

__version__ = "0.1.0"