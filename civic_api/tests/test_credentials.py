# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for staff credential hashing.
"""

import pytest

from civic_api.services.credentials import PasswordHasher


class TestPasswordHasher:
    """Test bcrypt hashing and verification."""

    def test_hash_and_verify(self, fast_hasher):
        hashed = fast_hasher.hash("correct horse battery")

        assert hashed.startswith("$2b$04$")
        assert hashed != "correct horse battery"
        assert fast_hasher.verify("correct horse battery", hashed) is True
        assert fast_hasher.verify("wrong password", hashed) is False

    def test_hashes_are_salted(self, fast_hasher):
        assert fast_hasher.hash("same password") != fast_hasher.hash("same password")

    def test_short_password_rejected(self, fast_hasher):
        with pytest.raises(ValueError):
            fast_hasher.hash("short")

    def test_malformed_hash_does_not_verify(self, fast_hasher):
        assert fast_hasher.verify("plaintext-pass", "plaintext-pass") is False

    def test_rounds_from_environment(self, monkeypatch):
        monkeypatch.setenv("BCRYPT_ROUNDS", "5")
        assert PasswordHasher().rounds == 5
