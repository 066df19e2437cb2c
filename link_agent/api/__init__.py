# API module for the MAAS link agent
from .routes import register_routes

__all__ = ["register_routes"]
