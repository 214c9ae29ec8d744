"""Change sources for replication."""
