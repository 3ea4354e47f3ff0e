# =============================================================================
# core/__init__.py
# =============================================================================
# This package contains ALL the logic of the knowledge base tool server:
# configuration, the tool catalog, the session registry, the dispatcher and
# the Bedrock gateway.
#
# ARCHITECTURAL RULE:
#   Nothing in this package imports FastMCP, Google ADK or any other
#   orchestration framework.  The only third-party code it touches is boto3,
#   and only inside core/gateway.py.  The dispatcher can be driven directly
#   from a test with a fake gateway.
# =============================================================================
