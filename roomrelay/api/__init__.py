"""Relay API adapter package.

Architectural role:
- Defines the external interaction boundary for HTTP clients.
- Performs transport-level validation and response shaping.
- Delegates redesign work to the core pipeline.

Scope:
- Request lifecycle control for adapter concerns only.
- No direct provider invocation logic is implemented in this package root.
"""
