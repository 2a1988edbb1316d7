"""Hauptgang recipe API."""
