"""Infrastructure layer: database engine, schema, and the storage adapter.

This layer depends on stdlib and third-party libs (SQLAlchemy, Alembic).
It must never import from domain, services, commands, or output.
The service layer bridges between domain models and storage rows.
"""
