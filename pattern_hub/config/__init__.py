"""
Config Module
Configuration management.
"""

from .settings import ConfigManager, Config, get_api_url
from .registry import get_supabase_url, get_supabase_key

__all__ = [
    "ConfigManager",
    "Config",
    "get_api_url",
    "get_supabase_url",
    "get_supabase_key",
]
