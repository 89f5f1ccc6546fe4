"""Combine the text content of files, directories and globs into a single output file."""

__version__ = "0.1.0"
