"""Core ports, shared state and errors."""
