"""
Short id generation.

Ids are chosen by the caller (see shortlink_app.client); the store only
enforces uniqueness at insert time. A collision surfaces as a 409 and the
caller simply draws a new id.
"""

import secrets
import string

# Same alphabet as nanoid: URL-safe, and valid under the strict id format
URL_SAFE_ALPHABET = string.ascii_letters + string.digits + "_-"


class RandomShortCodeGenerator:
    """
    Random token generator.

    64 symbols per character: a 6-character id has 2**36 possible values,
    so collisions are rare enough to be handled by retrying.
    """

    def __init__(self, length: int = 6, alphabet: str = URL_SAFE_ALPHABET):
        if length < 1:
            raise ValueError("length must be at least 1")
        if not alphabet:
            raise ValueError("alphabet must not be empty")
        self.length = length
        self.alphabet = alphabet

    def generate(self) -> str:
        """Generate a random short id"""
        return ''.join(secrets.choice(self.alphabet) for _ in range(self.length))
