import logging

from kivy.metrics import dp
from kivy.properties import StringProperty
from kivy.uix.boxlayout import BoxLayout
from kivy.uix.button import Button
from kivy.uix.label import Label
from kivy.uix.screenmanager import Screen
from kivy.uix.scrollview import ScrollView

from .. import routes
from ..voice.commands import CommandCatalog

logger = logging.getLogger(__name__)

PHASE_LABELS = {
    'idle': "Tap the microphone and say a command",
    'listening': "Listening...",
    'processing': "Processing...",
}


def history_summary(count: int) -> str:
    if count == 1:
        return "1 interaction this session"
    return f"{count} interactions this session"


class ScreenNavigator:
    """Navigation collaborator: turns route identifiers into screen switches."""

    def __init__(self, screen_manager):
        self.screen_manager = screen_manager

    def navigate(self, route: str):
        name = routes.screen_name_for(route)
        if not self.screen_manager.has_screen(name):
            logger.warning(f"No screen for route {route!r}")
            name = routes.NOT_FOUND_SCREEN
        self.screen_manager.current = name
        logger.info(f"Navigated to {name}")


class RouteScreen(Screen):
    """
    One screen per route: title, page body, voice button and a way home.
    Page content beyond the voice surface is not part of this app.
    """
    page_title = StringProperty("")

    def __init__(self, route: str = None, **kwargs):
        if route is not None:
            kwargs.setdefault('name', routes.screen_name_for(route))
        super().__init__(**kwargs)
        self.route = route
        self.app = None
        self.page_title = routes.title_for(route)

        self.layout = BoxLayout(orientation='vertical', padding=dp(16), spacing=dp(12))
        self.layout.add_widget(Label(text=self.page_title, font_size=dp(28), size_hint_y=None, height=dp(56)))
        self.body = BoxLayout(orientation='vertical', spacing=dp(8))
        self.layout.add_widget(self.body)
        self.layout.add_widget(self._build_footer())
        self.add_widget(self.layout)

    def _build_footer(self):
        footer = BoxLayout(size_hint_y=None, height=dp(72), spacing=dp(12))
        home = Button(text="Home")
        home.bind(on_release=lambda _btn: self.go_home())
        self.voice_button = Button(text="Speak")
        self.voice_button.bind(on_release=lambda _btn: self.toggle_voice())
        footer.add_widget(home)
        footer.add_widget(self.voice_button)
        return footer

    def set_app_instance(self, app_instance):
        self.app = app_instance

    def go_home(self):
        if self.app:
            self.app.navigator.navigate(routes.HOME)

    def toggle_voice(self):
        if self.app:
            self.app.toggle_listening()

    def refresh_voice_state(self, phase: str, transcript: str):
        """Called by the app whenever the engine phase changes."""
        self.voice_button.text = "Stop" if phase == 'listening' else "Speak"
        self.voice_button.disabled = phase == 'processing'


class HomeScreen(RouteScreen):

    def __init__(self, **kwargs):
        super().__init__(route=routes.HOME, **kwargs)
        self.status_label = Label(text=PHASE_LABELS['idle'])
        self.transcript_label = Label(text="", color=(0.5, 0.5, 0.5, 1))
        self.body.add_widget(self.status_label)
        self.body.add_widget(self.transcript_label)

    def refresh_voice_state(self, phase, transcript):
        super().refresh_voice_state(phase, transcript)
        self.status_label.text = PHASE_LABELS.get(phase, phase)
        self.transcript_label.text = f'You said: "{transcript}"' if transcript else ""


class VoiceCommandsScreen(RouteScreen):
    """Lists the command catalog; tapping a command reads it aloud."""

    def __init__(self, **kwargs):
        super().__init__(route=routes.VOICE_COMMANDS, **kwargs)
        self.scroll = ScrollView()
        self.command_list = BoxLayout(orientation='vertical', size_hint_y=None, spacing=dp(4))
        self.command_list.bind(minimum_height=self.command_list.setter('height'))
        self.scroll.add_widget(self.command_list)
        self.body.add_widget(self.scroll)

    def set_app_instance(self, app_instance):
        super().set_app_instance(app_instance)
        self.load_commands()

    def load_commands(self):
        if not self.app:
            return
        self.command_list.clear_widgets()
        catalog = self.app.engine.commands
        for category, definitions in catalog.by_category().items():
            self.command_list.add_widget(Label(
                text=category.value.capitalize(), bold=True, size_hint_y=None, height=dp(40)
            ))
            for definition in definitions:
                btn = Button(
                    text=f'"{definition.patterns[0]}" - {definition.description}',
                    size_hint_y=None,
                    height=dp(48)
                )
                btn.bind(on_release=lambda _btn, d=definition: self.app.engine.speak(CommandCatalog.describe(d)))
                self.command_list.add_widget(btn)


class HistoryScreen(RouteScreen):
    """Recent interactions from the in-memory log."""

    def __init__(self, **kwargs):
        super().__init__(route=routes.HISTORY, **kwargs)
        self.summary_label = Label(text=history_summary(0), size_hint_y=None, height=dp(32))
        self.entries = BoxLayout(orientation='vertical', spacing=dp(4))
        clear = Button(text="Clear history", size_hint_y=None, height=dp(48))
        clear.bind(on_release=lambda _btn: self.clear_history())
        self.body.add_widget(self.summary_label)
        self.body.add_widget(self.entries)
        self.body.add_widget(clear)

    def on_pre_enter(self, *args):
        self.load_history()

    def load_history(self):
        if not self.app:
            return
        self.entries.clear_widgets()
        self.summary_label.text = history_summary(self.app.history.count())
        interactions = self.app.history.get_recent(10)
        if not interactions:
            self.entries.add_widget(Label(text="No interactions yet"))
            return
        for item in interactions:
            outcome = item.command or "Not recognized"
            self.entries.add_widget(Label(text=f'{item.created_at}  "{item.transcript}"  {outcome}'))

    def clear_history(self):
        if not self.app:
            return
        if self.app.history.clear():
            self.app.engine.speak("Interaction history cleared")
        self.load_history()
