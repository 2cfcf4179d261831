"""Version information for tilediff."""

__version__ = "0.3.0"
