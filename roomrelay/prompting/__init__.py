"""Prompt construction package.

Exposes deterministic helpers that turn user input, style/room-type labels and
an optional scene description into an image-generation instruction.
"""
