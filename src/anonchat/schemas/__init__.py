"""Pydantic schemas for the AnonChat auth API."""
