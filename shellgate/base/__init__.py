"""Foundational pieces: configuration and the allowlist policy."""
#
# WHAT'S IN THIS PACKAGE:
# - config.py: settings (timeouts, output cap, history size, logging, bind address)
# - execution_policy.py: the allowlist that gates every command
#
