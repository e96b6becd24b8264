"""Toggleable bindings: modifiers that are either applied or restored.

The lifecycle lives in `toggleable_bindings.core`; the registry, persistence and
HTTP surface are layered on top of it.
"""
