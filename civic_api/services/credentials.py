# SPDX-License-Identifier: Apache-2.0

"""
Staff credential hashing.

Passwords are stored as bcrypt hashes only; there is no way back to the
plaintext, so verification re-hashes the candidate.
"""

import os
import bcrypt
from opentelemetry import trace
import logging

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


class PasswordHasher:
    """bcrypt hashing with a configurable work factor."""

    def __init__(self, rounds: int = None):
        self.rounds = rounds or int(os.getenv('BCRYPT_ROUNDS', '12'))

    def hash(self, password: str) -> str:
        """
        Hash a password using bcrypt with salt.

        Args:
            password: Plain text password to hash

        Returns:
            Hashed password string

        Raises:
            ValueError: If the password is shorter than the minimum length
        """
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

        with tracer.start_as_current_span("credentials.hash_password") as span:
            span.set_attribute("credentials.rounds", self.rounds)

            salt = bcrypt.gensalt(rounds=self.rounds)
            hashed = bcrypt.hashpw(password.encode('utf-8'), salt)

            logger.debug("Password hashed successfully")
            return hashed.decode('utf-8')

    def verify(self, password: str, hashed_password: str) -> bool:
        """
        Verify a password against its hash.

        Returns:
            True if password matches, False otherwise (including malformed hashes)
        """
        with tracer.start_as_current_span("credentials.verify_password") as span:
            try:
                result = bcrypt.checkpw(
                    password.encode('utf-8'),
                    hashed_password.encode('utf-8')
                )
            except ValueError as e:
                span.set_attribute("credentials.verification_result", "error")
                logger.error(f"Password verification error: {str(e)}")
                return False

            span.set_attribute("credentials.verification_result", "success" if result else "failed")
            return result
