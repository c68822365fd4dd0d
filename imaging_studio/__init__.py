"""Image post-processing for the content studio: load, clean, convert, resize."""

__version__ = "0.1.0"
