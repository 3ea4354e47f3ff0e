# =============================================================================
# tools/__init__.py
# =============================================================================
# This package contains the FastMCP surface of the server.
#
# ARCHITECTURAL ROLE:
#   tools/ is the translation layer between MCP and core/.  It:
#     1. Registers one FastMCP tool per entry in core/catalog.py
#     2. Forwards each call to core.dispatcher.Dispatcher
#     3. Turns the dispatcher's envelope into MCP content, and its typed
#        errors into ToolError
#     4. Owns process startup (config loading, logging, stdio transport)
#
# WHAT TOOLS DO NOT DO:
#   - They do NOT validate arguments (the dispatcher does, from the catalog)
#   - They do NOT talk to AWS (core/gateway.py does)
#   - They do NOT know about Google ADK
# =============================================================================
