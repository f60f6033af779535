"""MCP tool registration for the Gemini image MCP server"""
