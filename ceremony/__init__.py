"""
Ceremony - Validation Session Engine

Drives the flip validation ceremony of an identity network node:
participants judge encoded image sequences ("flips") during a short
and a long session, both bound to the node's epoch clock.

The engine provides:
- Flip decoding and collection management
- A pure reducer over the validation state
- Session scope with polling, timers and auto-submission
- A JSON-RPC client for the node
"""

__version__ = "0.1.0"
