"""
Task collection backends.

Components:
- sqlite_backend.py: local SQLite collection (offline / local-only mode)
- rest_backend.py: hosted relational store over a PostgREST-compatible API (httpx)
- polling.py: change subscription shared by both (diff consecutive reads)
"""
