"""Image generation adapter package.

Scope:
    Provides the image-generation provider client and the poll/wait gateways
    used by the core pipeline.

Non-goals:
    - No job persistence or caching of predictions.
    - No retries of failed provider calls.
"""
