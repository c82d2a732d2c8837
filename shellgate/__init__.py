# ============================================================================
# shellgate/__init__.py
# Package Marker for the Command Gateway
# ============================================================================
#
# PURPOSE:
# Policy-gated shell command execution. A caller hands us a command string,
# the allowlist decides whether it may run, the engine runs it under a
# deadline, and the history ring keeps an audit trail of what ran.
#
# LAYOUT:
# - base/: configuration and the allowlist policy
# - engine/: bounded subprocess execution
# - data/: the in-memory execution history
# - gateway.py: orchestration (policy -> engine -> history -> response)
# - server/: HTTP and stdio transports that expose the gateway as tools
#
# ============================================================================

__version__ = "0.1.0"
