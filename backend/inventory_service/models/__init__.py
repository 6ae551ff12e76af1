"""ORM models for the row-backed storage strategy."""
