import pytest
from unittest.mock import Mock

from sightline.data.database import InteractionLog
from sightline.security import SecurityManager


class TestInteractionLog:
    @pytest.fixture
    def log(self):
        log = InteractionLog()
        yield log
        log.close()

    def test_record_and_get_recent(self, log):
        assert log.record("go home", "Go to home page", "navigate") is True
        assert log.record("xyz nonsense") is True

        recent = log.get_recent()
        assert [i.transcript for i in recent] == ["xyz nonsense", "go home"]
        assert recent[0].recognized is False
        assert recent[0].command is None
        assert recent[1].recognized is True
        assert recent[1].category == "navigate"
        assert recent[1].created_at

    def test_limit(self, log):
        for n in range(5):
            log.record(f"utterance {n}")
        assert [i.transcript for i in log.get_recent(2)] == ["utterance 4", "utterance 3"]

    def test_oldest_entries_dropped(self):
        log = InteractionLog(max_entries=3)
        for n in range(5):
            log.record(f"utterance {n}")
        assert log.count() == 3
        assert log.get_recent()[-1].transcript == "utterance 2"
        log.close()

    def test_clear(self, log):
        log.record("go home", "Go to home page", "navigate")
        assert log.clear() is True
        assert log.count() == 0
        assert log.get_recent() == []

    @pytest.mark.security
    def test_transcripts_encrypted_at_rest(self, log):
        log.record("my bank pin is 1234")
        stored = log._conn.execute("SELECT transcript_encrypted FROM interactions").fetchone()[0]
        assert "1234" not in stored
        assert log.security.decrypt_data(stored) == "my bank pin is 1234"

    @pytest.mark.security
    def test_shared_security_manager(self):
        security = SecurityManager()
        log = InteractionLog(security_manager=security)
        assert log.security is security
        log.close()

    def test_separate_logs_are_isolated(self, log):
        other = InteractionLog()
        log.record("go home")
        assert other.count() == 0
        other.close()

    @pytest.mark.security
    def test_refuses_broken_key(self):
        security = Mock()
        security.validate_key_integrity.return_value = False
        with pytest.raises(RuntimeError):
            InteractionLog(security_manager=security)
