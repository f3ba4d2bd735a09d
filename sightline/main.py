import logging
import os

from kivy.app import App
from kivy.clock import Clock
from kivy.core.window import Window
from kivy.uix.screenmanager import ScreenManager

from . import routes
from .config import AssistantConfig, load_config
from .data.database import InteractionLog
from .gui.popups import ListeningPopup, NotificationPopup
from .gui.screens import HistoryScreen, HomeScreen, RouteScreen, ScreenNavigator, VoiceCommandsScreen
from .signals import SignalRouter
from .voice.engine import Severity, VoiceEngine
from .voice.stt_engine import SpeechToTextEngine
from .voice.tts_engine import TextToSpeechEngine

logger = logging.getLogger(__name__)

STATE_POLL_SECONDS = 0.2


def setup_logging(config: AssistantConfig):
    """Configure root logging: console plus an optional log file."""
    handlers = [logging.StreamHandler()]
    if config.log_file:
        try:
            os.makedirs(os.path.dirname(config.log_file), exist_ok=True)
            handlers.append(logging.FileHandler(config.log_file))
        except OSError as e:
            print(f"Could not open log file {config.log_file}: {e}")

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )


class SightlineApp(App):
    """
    Composition root: builds the speech adapters, the voice engine and
    one screen per route, and keeps the screens in step with the engine.
    """

    def __init__(self, assistant_config: AssistantConfig = None, **kwargs):
        super().__init__(**kwargs)
        self.assistant_config = assistant_config or load_config()
        self.screen_manager = None
        self.navigator = None
        self.tts_engine = None
        self.history = None
        self.engine = None
        self.listening_popup = None
        self.font_size = 20
        self._last_state = None

    def _initialize_components(self):
        """
        Initialize TTS, history and the voice engine. A missing speech
        recognition model leaves the engine without a recognition session.
        """
        cfg = self.assistant_config
        self.tts_engine = TextToSpeechEngine(base_rate=cfg.base_speech_rate, defaults=cfg.speech)
        if not self.tts_engine.get_voice_count():
            logger.warning("No TTS voices found; spoken feedback is unavailable")
        self.history = InteractionLog()
        self.engine = VoiceEngine(
            speech=self.tts_engine,
            session_factory=self._create_session,
            navigate=self.navigator.navigate,
            notify=self.show_notification,
            on_signal=SignalRouter(self.tts_engine, cfg.volume_step),
            history=self.history,
        )
        logger.info("All components initialized successfully")

    def _create_session(self, event_sink):
        cfg = self.assistant_config
        return SpeechToTextEngine(cfg.model_path, event_sink, sample_rate=cfg.sample_rate)

    def build(self):
        """Build the main application."""
        Window.size = (550, 800)
        Window.clearcolor = (0.08, 0.1, 0.12, 1)

        self.screen_manager = ScreenManager()
        self.navigator = ScreenNavigator(self.screen_manager)
        self._initialize_components()

        screens = [HomeScreen(), VoiceCommandsScreen(), HistoryScreen()]
        built = {screen.route for screen in screens}
        screens += [RouteScreen(route=route) for route in routes.ROUTES if route not in built]
        screens.append(RouteScreen(name=routes.NOT_FOUND_SCREEN))

        for screen in screens:
            screen.set_app_instance(self)
            self.screen_manager.add_widget(screen)

        Clock.schedule_interval(self._sync_voice_state, STATE_POLL_SECONDS)
        return self.screen_manager

    def on_start(self):
        self.engine.speak(self.assistant_config.welcome_message)

    # ---------- Voice ----------
    def toggle_listening(self):
        """
        Voice button handler. Stops ongoing speech before listening so
        the microphone does not pick up our own feedback.
        """
        if not self.engine.is_listening:
            self.tts_engine.stop()
        self.engine.toggle_listening()
        self._sync_voice_state()

    def _sync_voice_state(self, *_args):
        state = (self.engine.phase.value, self.engine.last_transcript)
        if state == self._last_state:
            return
        self._last_state = state

        if self.engine.is_listening and not self.listening_popup:
            self.listening_popup = ListeningPopup(dismiss_callback=self._cancel_from_popup)
            self.listening_popup.open()
        elif not self.engine.is_listening and self.listening_popup:
            self.listening_popup.close_quietly()
            self.listening_popup = None

        for screen in self.screen_manager.screens:
            screen.refresh_voice_state(*state)

    def _cancel_from_popup(self):
        self.listening_popup = None
        if self.engine.is_listening:
            self.engine.toggle_listening()
        self._sync_voice_state()

    def show_notification(self, title: str, description: str, severity: Severity = Severity.INFO):
        """Notification collaborator for the voice engine."""
        NotificationPopup(
            title=title,
            description=description,
            severity=severity,
            seconds=self.assistant_config.notification_seconds
        ).open()

    def on_stop(self):
        """Clean up resources on app exit."""
        if self.engine:
            self.engine.close()
        if self.tts_engine:
            self.tts_engine.stop()
        if self.history:
            self.history.close()


def main():
    config = load_config()
    setup_logging(config)
    SightlineApp(assistant_config=config).run()


if __name__ == '__main__':
    main()
