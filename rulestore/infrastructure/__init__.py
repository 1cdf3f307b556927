"""Infrastructure layer: persistence, logging and the Casbin adapter."""
