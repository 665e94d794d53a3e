"""Persistence infrastructure: engine, units of work and repositories."""
