"""extsync - keep installed extensions in sync with a published feed."""

__version__ = "0.3.0"
