from .routes import WebRoutes

__all__ = ['WebRoutes']
