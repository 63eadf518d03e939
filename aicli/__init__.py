"""AI-assisted code editing CLI."""

__version__ = "0.1.1"
