"""Database Infrastructure - SQLAlchemy declarative Base."""
