"""
Utility modules for the crawler.
"""

from .config import Config, ConfigManager

__all__ = ['Config', 'ConfigManager']
