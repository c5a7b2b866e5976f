"""
Routers Package
===============

Routers are like the reception desk - they direct incoming requests
to the right place.
"""

from .cases import router as cases_router, get_case_store
from .buzzer import router as buzzer_router

__all__ = [
    "cases_router",
    "buzzer_router",
    "get_case_store",
]
