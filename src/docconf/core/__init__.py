"""
Core infrastructure for docconf: static settings, logging, execution
context, event bus and caches.
"""
