"""
Drama Quotes Backend — Application Package Initializer
======================================================

What: Marks the `dramaquotes` directory as a Python package.
Who:  Imported by uvicorn (`dramaquotes.main:app`), Alembic and pytest.

Architecture Note:
    The backend is layered the same way top to bottom:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │  Services (credentials, tokens,     │  ← identity + find-or-create
    │  drama resolution, quotes, users)   │
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Routes translate HTTP to service calls; services raise the exceptions in
    `dramaquotes.exceptions`, which the handlers in `main.py` map to status codes.
"""

__version__ = "1.0.0"
