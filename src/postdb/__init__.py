"""postdb - CouchDB-style document store and replicator on PostgreSQL."""

__version__ = "0.1.0"
