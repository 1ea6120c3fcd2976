"""FastAPI integration: query-string parsing and exception handlers."""
