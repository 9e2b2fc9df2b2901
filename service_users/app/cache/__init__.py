"""
Cache package for Users Service.

Provides a Redis-backed store of JSON user snapshots with a fixed TTL.
Entries are only ever created or deleted, never updated in place.
"""
