"""secretsync dashboard API (FastAPI)."""
