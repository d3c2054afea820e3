"""Core data model, configuration and errors."""
