"""Concrete adapters for the interfaces in :mod:`scene.interfaces`."""
