"""Core functionality for min-n8n-mcp: HTTP layer, errors, pagination, observability."""
