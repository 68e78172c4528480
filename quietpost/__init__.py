"""Anonymous long-form posting with quota-limited comment threads."""

__version__ = "1.0.0"
