"""
Users service: cache-aside reads and write-invalidate updates over
PostgreSQL and Redis.
"""
