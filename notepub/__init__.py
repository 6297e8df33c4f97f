"""Publish Markdown notes to Micro.blog and host their embedded images."""

__version__ = "0.3.0"
