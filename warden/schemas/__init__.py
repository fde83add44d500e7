"""Pydantic schemas for Warden requests and responses."""
