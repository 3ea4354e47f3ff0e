# =============================================================================
# agent/__init__.py
# =============================================================================
# An example LLM-orchestrating client for the knowledge base server.
#
# The agent has no knowledge base logic of its own.  It reads the tool
# descriptions advertised by tools/mcp_server.py and decides when to
# retrieve, when to generate, and when to open a session.  Run it with
# `python main.py`.
# =============================================================================
