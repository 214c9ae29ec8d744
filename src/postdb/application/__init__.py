"""Application layer - use cases, ports, replication."""
