"""
Route identifiers of the assistant's screens.

Voice commands refer to screens by route ("/settings"); the GUI refers to
them by screen name ("settings").
"""

HOME = '/'
LIVE_VISION = '/live-vision'
WHATS_AROUND = '/whats-around'
NAVIGATION = '/navigation'
EMERGENCY = '/emergency'
CONTACTS = '/contacts'
SETTINGS = '/settings'
VOICE_COMMANDS = '/voice-commands'
HISTORY = '/history'
TUTORIAL = '/tutorial'
FEEDBACK = '/feedback'
ADMIN = '/admin'

NOT_FOUND_SCREEN = 'not_found'

# route -> (screen name, title)
ROUTES = {
    HOME: ('home', 'Home'),
    LIVE_VISION: ('live_vision', 'Live Vision'),
    WHATS_AROUND: ('whats_around', "What's Around"),
    NAVIGATION: ('navigation', 'Navigation'),
    EMERGENCY: ('emergency', 'Emergency'),
    CONTACTS: ('contacts', 'Contacts'),
    SETTINGS: ('settings', 'Settings'),
    VOICE_COMMANDS: ('voice_commands', 'Voice Commands'),
    HISTORY: ('history', 'History'),
    TUTORIAL: ('tutorial', 'Tutorial'),
    FEEDBACK: ('feedback', 'Feedback'),
    ADMIN: ('admin', 'Admin'),
}


def screen_name_for(route: str) -> str:
    """Screen name for a route; unknown routes go to the not-found screen."""
    if not route:
        return NOT_FOUND_SCREEN
    route = route.strip()
    if len(route) > 1:
        route = route.rstrip('/')
    entry = ROUTES.get(route)
    return entry[0] if entry else NOT_FOUND_SCREEN


def title_for(route: str) -> str:
    entry = ROUTES.get(route)
    return entry[1] if entry else 'Page Not Found'
