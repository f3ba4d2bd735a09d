import pytest
from unittest.mock import Mock

from sightline.data.database import InteractionLog
from sightline.gui.screens import ScreenNavigator
from sightline.signals import SignalRouter
from sightline.voice.engine import Phase
from sightline.voice.events import SessionErrorKind, SessionFailed, SessionStarted, TranscriptReceived


class TestVoiceFlowIntegration:
    @pytest.fixture
    def test_system(self, make_engine):
        """Engine wired to the real history, signal router and navigator"""
        screen_manager = Mock()
        screen_manager.has_screen.return_value = True
        screen_manager.current = 'home'
        tts = Mock()
        history = InteractionLog()

        engine, session = make_engine(
            navigate=ScreenNavigator(screen_manager).navigate,
            on_signal=SignalRouter(tts, volume_step=0.1),
            history=history,
        )
        yield {
            'engine': engine,
            'session': session,
            'screens': screen_manager,
            'tts': tts,
            'history': history,
        }
        engine.close()
        history.close()

    def _say(self, system, text):
        system['engine'].toggle_listening()
        system['session'].emit(SessionStarted())
        system['session'].emit(TranscriptReceived(text))

    @pytest.mark.integration
    @pytest.mark.voice
    def test_navigation_flow(self, test_system, speech):
        self._say(test_system, "open settings")

        assert test_system['screens'].current == 'settings'
        speech.speak.assert_called_once_with("Opening open settings", None)
        recent = test_system['history'].get_recent()
        assert recent[0].transcript == "open settings"
        assert recent[0].command == "Open settings"

    @pytest.mark.integration
    @pytest.mark.voice
    def test_voice_change_flow(self, test_system):
        self._say(test_system, "please use a female voice")

        test_system['tts'].set_voice_gender.assert_called_once_with('female')
        assert test_system['screens'].current == 'settings'
        assert test_system['engine'].phase is Phase.IDLE

    @pytest.mark.integration
    @pytest.mark.voice
    def test_detection_flow(self, test_system):
        self._say(test_system, "what do you see")

        assert test_system['screens'].current == 'live_vision'
        assert test_system['history'].get_recent()[0].category == "detect"

    @pytest.mark.integration
    @pytest.mark.voice
    def test_unrecognized_then_recognized(self, test_system, collaborators):
        self._say(test_system, "sing me a song")
        self._say(test_system, "go home")

        recent = test_system['history'].get_recent()
        assert [i.recognized for i in recent] == [True, False]
        assert test_system['screens'].current == 'home'
        assert collaborators['notify'].call_count == 2

    @pytest.mark.integration
    @pytest.mark.voice
    def test_recover_after_session_error(self, test_system):
        engine, session = test_system['engine'], test_system['session']
        engine.toggle_listening()
        session.emit(SessionFailed(SessionErrorKind.NO_SPEECH))
        assert engine.phase is Phase.IDLE

        self._say(test_system, "volume down")
        test_system['tts'].adjust_volume.assert_called_once_with(-0.1)
        assert session.started == 2
