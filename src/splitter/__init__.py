"""splitter: balance test files across parallel CI nodes using timing history."""

__version__ = "0.3.0"
