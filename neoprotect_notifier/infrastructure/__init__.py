"""Infrastructure Layer - Upstream gateway and in-memory state."""
