"""Pydantic AI agents."""
