"""Daily gift bot backend."""
