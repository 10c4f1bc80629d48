"""Room redesign relay.

Architectural role:
    Accepts a room photo plus style/room-type labels, optionally captions the
    photo with a vision model, composes a restyling prompt, and forwards both
    to an external image-generation provider.

Package split:
    - `config`: environment-driven settings and provider tables.
    - `vision`: optional captioning client and fallback analyzer.
    - `prompting`: deterministic prompt composition.
    - `image`: image-generation transport and poll/wait gateways.
    - `core`: request pipeline, shared types, and error mapping.
    - `api`: HTTP adapter, upload normalization, server and client entrypoints.
"""

__version__ = "0.1.0"
