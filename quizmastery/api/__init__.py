"""HTTP API for quiz checks, session submission and analytics."""
