"""Configuration, logging and exceptions shared across the client."""
