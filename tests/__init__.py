"""Unit tests for multitrans.

This package contains test modules for all components of the multitrans application.
Tests use pytest with asyncio support; HTTP calls go to local aiohttp test servers or scripted adapters.
"""
