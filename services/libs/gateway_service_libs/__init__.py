"""
Gateway Service Libraries Package.

Shared logging and error handling utilities for the document gateway service.
"""
