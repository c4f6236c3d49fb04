"""Utility functions and helpers"""
from .logger import logger
from .error_handler import error_handler

__all__ = ['logger', 'error_handler']
