"""legalchat - conversation orchestration backend for the legal AI assistant."""

__version__ = "1.0.0"
