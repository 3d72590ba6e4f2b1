"""
HTTP handlers that sit beside the ingestion route
"""
