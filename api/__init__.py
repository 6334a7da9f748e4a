"""
HTTP relay for the LSEG Data Platform.

Exposes a simplified API to the frontend and forwards calls to the
Data Platform with per-profile OAuth token management.
"""

__version__ = "1.0.0"
