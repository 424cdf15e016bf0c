"""Activity API route modules."""
