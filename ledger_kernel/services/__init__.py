"""Kernel services: stateful collaborators built on the pure domain layer."""
