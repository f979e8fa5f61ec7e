"""Doctor registration service."""
