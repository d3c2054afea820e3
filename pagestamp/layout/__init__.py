"""Renderer-independent layout: coordinates, patterns, text and substitution."""
