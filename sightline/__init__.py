"""
Sightline
Voice-controlled assistant for blind and low-vision users
"""

__version__ = "1.0.0"
__description__ = "Voice-controlled accessibility assistant"
