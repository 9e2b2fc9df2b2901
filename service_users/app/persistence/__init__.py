"""
Persistence package for Users Service.

The PostgreSQL store is the source of truth for user records.
"""
