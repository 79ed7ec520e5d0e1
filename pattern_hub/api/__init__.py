"""
HTTP API for Pattern Hub.
"""

from pattern_hub.api.app import PatternAPI, create_app, main
from pattern_hub.api.ratelimit import FixedWindowRateLimiter, RateLimitDecision, client_key

__all__ = [
    "PatternAPI",
    "create_app",
    "main",
    "FixedWindowRateLimiter",
    "RateLimitDecision",
    "client_key",
]
