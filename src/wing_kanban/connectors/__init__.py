"""Presentation-side connectors (console board, background loop runner)."""
