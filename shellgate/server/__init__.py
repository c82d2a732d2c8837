# ============================================================================
# shellgate/server/__init__.py
# Transports - how callers reach the gateway
# ============================================================================
#
# Both transports speak the same tool contract (see catalog.py):
# - api.py: FastAPI app, POST /v1/tools/<tool_name>
# - stdio.py: one JSON request per line on stdin, one JSON response per line
#   on stdout
#
# Tool results always have the shape
#   {"content": [{"type": "text", "text": "..."}], "isError": false}
#
# ============================================================================
