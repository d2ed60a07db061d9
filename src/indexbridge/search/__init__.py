"""Search index backends."""
