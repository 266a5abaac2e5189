"""Domain services backing the API routes."""
