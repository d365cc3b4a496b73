"""Datastore — async SQLAlchemy engine and session management."""
