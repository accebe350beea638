"""Grouping engine: pair components, capacity planning and packing."""
