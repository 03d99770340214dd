"""Pydantic request/response contracts. Kept separate from the ORM models."""
