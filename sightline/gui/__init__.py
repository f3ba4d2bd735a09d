"""
GUI components for the voice assistant
"""

from .popups import ListeningPopup, NotificationPopup
from .screens import HistoryScreen, HomeScreen, RouteScreen, ScreenNavigator, VoiceCommandsScreen

__all__ = [
    'HomeScreen',
    'RouteScreen',
    'HistoryScreen',
    'VoiceCommandsScreen',
    'ScreenNavigator',
    'ListeningPopup',
    'NotificationPopup',
]
