"""
DTOs Package - Application Layer

Pydantic models returned by the operational HTTP endpoints.
"""
