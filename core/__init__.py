"""Core module for bot configuration and the Telegram transport"""
from .config import config

# core.bot is imported explicitly by the entry point and handlers:
# constructing Bot() validates BOT_TOKEN.
__all__ = ['config']
