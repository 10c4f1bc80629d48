"""Vision analysis package.

Architectural role:
    Produces a short scene description for an uploaded room photo. The step is
    optional: every failure degrades to a fixed sentinel description.
"""
