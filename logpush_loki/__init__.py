"""
Cloudflare Logpush to Loki shipping adapter
"""

__version__ = "1.0.0"
