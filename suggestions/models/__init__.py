# Export all suggestion models for easy imports
from .base import Base
from .suggestion import Suggestion

__all__ = [
    "Base",
    "Suggestion",
]
