"""Providers and the download pipeline (handlers live in downloaders.router / downloaders.inline)"""
