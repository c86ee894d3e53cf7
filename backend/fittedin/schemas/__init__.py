"""
FittedIn Backend — Pydantic Request/Response Schemas
=====================================================

API contracts, kept separate from the ORM models in `fittedin.models`.
"""
