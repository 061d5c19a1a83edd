"""User authentication backend: registration, login and role-gated profile endpoints."""

__version__ = "0.1.0"
