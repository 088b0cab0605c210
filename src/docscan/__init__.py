"""
Docscan check and receipt extraction service.

The package exposes the OCR and JSON-extraction clients, the document scanning pipeline
that normalizes and scores their output, and the HTTP API wrapping it.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
