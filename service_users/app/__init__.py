"""
Users service application package.

- models: user record and request models
- errors: user-facing error taxonomy
- persistence: PostgreSQL record store accessor
- cache: Redis cache client for user snapshots
- coordinator: cache-aside read and write-invalidate protocol
- main: FastAPI service wiring
"""
