"""StackNote backend: session token lifecycle and request authentication."""

__version__ = "0.3.0"
