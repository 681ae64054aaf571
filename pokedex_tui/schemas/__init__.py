"""Schemas — pydantic models for PokeAPI payloads and cached records."""
