"""
Logging and configuration helpers
"""
