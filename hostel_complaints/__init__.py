from .web.dashboard import create_app

__all__ = ["create_app"]
