"""Pluggable vector storage with embedding, search and transactional batching."""

__version__ = "0.3.0"
