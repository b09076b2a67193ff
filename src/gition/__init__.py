"""gition: markdown task extraction, grouping and editing service."""

__version__ = "0.1.0"
