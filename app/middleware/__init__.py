"""ASGI middleware installed by ``create_app``."""
