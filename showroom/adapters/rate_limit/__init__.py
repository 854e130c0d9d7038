"""Rate limiting adapters: per-identity quota counters behind one interface."""
