"""Reference Backend (FastAPI + in-memory store + SSE)."""
