import base64
import logging

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger(__name__)


class SecurityManager:
    """
    Encrypts utterances kept in memory.

    The key lives only as long as the process; nothing is written to disk,
    so stored history is unreadable once the assistant exits.
    """

    def __init__(self, key: bytes = None):
        self.cipher_key = key or Fernet.generate_key()
        self.fernet = Fernet(self.cipher_key)

    def encrypt_data(self, data):
        """Encrypt sensitive data"""
        if not data:
            return data
        encrypted_bytes = self.fernet.encrypt(data.encode('utf-8'))
        return base64.urlsafe_b64encode(encrypted_bytes).decode('utf-8')

    def decrypt_data(self, encrypted_data):
        """Decrypt sensitive data"""
        if not encrypted_data:
            return encrypted_data
        try:
            encrypted_bytes = base64.urlsafe_b64decode(encrypted_data.encode('utf-8'))
            decrypted_bytes = self.fernet.decrypt(encrypted_bytes)
            return decrypted_bytes.decode('utf-8')
        except (InvalidToken, ValueError) as e:
            logger.error(f"Error decrypting data: {type(e).__name__}")
            return "[Decryption Error]"

    def validate_key_integrity(self):
        """Validate that the encryption key is working properly"""
        test_data = "test_validation"
        return self.decrypt_data(self.encrypt_data(test_data)) == test_data
