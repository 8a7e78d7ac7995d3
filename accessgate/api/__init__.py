"""AccessGate FastAPI backend."""
