"""
Core layer - domain model, ports, exceptions, and the provider factory.

Nothing in here performs I/O directly.
"""
