"""Pydantic domain models."""
