"""Key-value storage adapters.

The TTL cache persists entries through this small interface so the backing
store (process memory, a browser-like session store, Redis) can be swapped
without touching the cache logic.
"""
