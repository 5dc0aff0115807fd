"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Network collaborators.
"""

from .fetcher import Fetcher, UrllibFetcher, fetch_with_timeout
from .timeouts import await_with_timeout

__all__ = ["Fetcher", "UrllibFetcher", "fetch_with_timeout", "await_with_timeout"]
