import pytest
from cryptography.fernet import Fernet

from sightline.security import SecurityManager


class TestSecurity:
    @pytest.fixture
    def security_manager(self):
        return SecurityManager()

    @pytest.mark.security
    def test_encryption_decryption(self, security_manager):
        plaintext = "call my daughter"
        encrypted = security_manager.encrypt_data(plaintext)
        decrypted = security_manager.decrypt_data(encrypted)
        assert decrypted == plaintext
        assert plaintext not in encrypted

    @pytest.mark.security
    def test_different_encryption(self, security_manager):
        """Same text encrypts differently each time"""
        text = "Same text"
        assert security_manager.encrypt_data(text) != security_manager.encrypt_data(text)

    @pytest.mark.security
    def test_empty_values_pass_through(self, security_manager):
        assert security_manager.encrypt_data("") == ""
        assert security_manager.decrypt_data(None) is None

    @pytest.mark.security
    def test_key_is_per_process(self, security_manager):
        other = SecurityManager()
        encrypted = security_manager.encrypt_data("where am i")
        assert other.decrypt_data(encrypted) == "[Decryption Error]"

    @pytest.mark.security
    def test_explicit_key(self):
        key = Fernet.generate_key()
        first, second = SecurityManager(key), SecurityManager(key)
        assert second.decrypt_data(first.encrypt_data("read this")) == "read this"

    @pytest.mark.security
    def test_garbage_input(self, security_manager, caplog):
        assert security_manager.decrypt_data("not-a-token") == "[Decryption Error]"
        assert "not-a-token" not in caplog.text

    @pytest.mark.security
    def test_validate_key_integrity(self, security_manager):
        assert security_manager.validate_key_integrity() is True
