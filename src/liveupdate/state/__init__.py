"""State layer.

This package is the single source of truth for the live session: which
subscription keys the remote service currently acknowledges (the registry),
the last value pushed for each of them (the cache), and the configuration
remembered per object path.  Only the inbound frame handler writes to it.
"""
