"""
Data models for the ingestion pipeline and API responses
"""
