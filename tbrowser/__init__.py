"""Terminal text browser: HTML to scrollable, searchable plain text."""

__version__ = "0.2.0"
