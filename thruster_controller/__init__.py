"""Thrust allocation for a multi-thruster underwater vehicle."""
