"""FastAPI routers for the interview server."""
