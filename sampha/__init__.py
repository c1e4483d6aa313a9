"""sampha API: health endpoint plus embedded SPA asset server."""

__version__ = "1.0.0"
