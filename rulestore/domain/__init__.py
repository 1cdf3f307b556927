"""Domain layer: rule rows, filters, enums and protocols.

Nothing here imports SQLAlchemy or Casbin.
"""
