"""Tests for auth/tokens.py - public ids, edit tokens and digest checks."""

import hashlib
import hmac
from unittest.mock import patch

from auth.tokens import (
    ALPHABET,
    EDIT_TOKEN_LENGTH,
    PUBLIC_ID_LENGTH,
    generate_edit_token,
    generate_public_id,
    hash_token,
    verify_token,
)


class TestGeneration:

    def test_public_id_shape(self):
        public_id = generate_public_id()

        assert len(public_id) == PUBLIC_ID_LENGTH == 12
        assert set(public_id) <= set(ALPHABET)

    def test_edit_token_shape(self):
        token = generate_edit_token()

        assert len(token) == EDIT_TOKEN_LENGTH == 32
        assert set(token) <= set(ALPHABET)

    def test_alphabet_is_url_safe(self):
        assert len(ALPHABET) == 64
        assert set(ALPHABET) - set("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_-") == set()

    def test_values_are_not_repeated(self):
        tokens = {generate_edit_token() for _ in range(200)}
        ids = {generate_public_id() for _ in range(200)}

        assert len(tokens) == 200
        assert len(ids) == 200

    def test_uses_secrets_module(self):
        with patch("auth.tokens.secrets.choice", return_value="a") as choice:
            assert generate_public_id() == "a" * 12
        assert choice.call_count == 12


class TestHashToken:

    def test_sha256_hex(self):
        assert hash_token("abc") == hashlib.sha256(b"abc").hexdigest()

    def test_hash_is_64_lowercase_hex(self):
        digest = hash_token(generate_edit_token())
        assert len(digest) == 64
        assert digest == digest.lower()
        int(digest, 16)

    def test_hash_differs_from_token(self):
        token = generate_edit_token()
        assert hash_token(token) != token


class TestVerifyToken:

    def test_round_trip(self):
        token = generate_edit_token()
        assert verify_token(token, hash_token(token)) is True

    def test_wrong_token(self):
        token = generate_edit_token()
        assert verify_token(generate_edit_token(), hash_token(token)) is False

    def test_token_differing_in_one_char(self):
        token = generate_edit_token()
        tampered = ("b" if token[0] == "a" else "a") + token[1:]
        assert verify_token(tampered, hash_token(token)) is False

    def test_empty_candidate(self):
        assert verify_token("", hash_token("x")) is False

    def test_non_string_candidate(self):
        assert verify_token(None, hash_token("x")) is False
        assert verify_token(12345, hash_token("12345")) is False

    def test_stored_hash_wrong_length(self):
        assert verify_token("token", "abc123") is False
        assert verify_token("token", hash_token("token") + "00") is False

    def test_stored_hash_not_hex(self):
        assert verify_token("token", "z" * 64) is False

    def test_stored_hash_not_string(self):
        assert verify_token("token", None) is False

    def test_unencodable_candidate(self):
        # Lone surrogates can't be UTF-8 encoded
        assert verify_token("\ud800", hash_token("x")) is False

    def test_compares_in_constant_time(self):
        token = generate_edit_token()
        stored = hash_token(token)

        with patch("auth.tokens.hmac.compare_digest", wraps=hmac.compare_digest) as compare:
            assert verify_token(token, stored) is True

        compare.assert_called_once_with(bytes.fromhex(stored), bytes.fromhex(stored))
