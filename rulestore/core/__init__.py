"""Core configuration, errors, enums and composition root."""
