"""Pydantic schemas and enums for scores and rule conditions."""
