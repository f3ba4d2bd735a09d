"""
Data management components for the voice assistant
"""

from .database import InteractionLog
from .models import Interaction

__all__ = [
    'InteractionLog',
    'Interaction'
]
