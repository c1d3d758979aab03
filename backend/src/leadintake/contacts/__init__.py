"""Contacts read API."""
