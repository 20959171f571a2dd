# routers/__init__.py
from .finance import router as finance_router

__all__ = ["finance_router"]
