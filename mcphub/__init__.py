"""Multi-tenant MCP gateway: many tool integrations behind one JSON-RPC endpoint."""

__version__ = "1.0.0"
