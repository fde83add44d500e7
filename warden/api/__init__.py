"""
HTTP API layer for Warden.
"""
