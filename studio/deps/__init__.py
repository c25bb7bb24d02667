"""FastAPI dependencies for authentication and authorization."""
