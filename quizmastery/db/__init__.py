"""Persistence layer: SQLAlchemy models, sessions and the learner store."""
