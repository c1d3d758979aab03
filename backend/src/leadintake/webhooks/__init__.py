"""Inbound email webhook boundary."""
