"""Core orchestration package.

Architectural role:
    Sits between the HTTP adapter and the provider subsystems (vision,
    prompting, image generation).

Composition:
    - `pipeline`: start/status operations for a single request.
    - `types`: request and result data contracts.
    - `errors`: provider error type and the HTTP status mapping table.

Package import itself is side-effect free.
"""
