"""HTTP API for dirpilot (FastAPI, mounted at ``/api/v1``)."""
