"""Tests for clients/valkey_client.py with a mocked redis client."""

from unittest.mock import Mock, patch

import pytest
import redis

from clients.valkey_client import ValkeyClient


@pytest.fixture
def redis_mock():
    return Mock(spec=redis.Redis)


@pytest.fixture
def valkey(redis_mock):
    return ValkeyClient("redis://localhost:6379/0", client=redis_mock)


class TestValkeyClient:

    def test_pings_on_connect(self, redis_mock, valkey):
        redis_mock.ping.assert_called_once()

    def test_connection_failure_raises(self, redis_mock):
        redis_mock.ping.side_effect = redis.ConnectionError("refused")

        with pytest.raises(redis.ConnectionError):
            ValkeyClient("redis://localhost:6379/0", client=redis_mock)

    def test_builds_client_from_url(self):
        with patch("clients.valkey_client.redis.from_url") as from_url:
            ValkeyClient("redis://cache:6379/1")

        from_url.assert_called_once_with("redis://cache:6379/1", decode_responses=True)

    def test_incr(self, redis_mock, valkey):
        redis_mock.incr.return_value = 3
        assert valkey.incr("k") == 3
        redis_mock.incr.assert_called_once_with("k")

    def test_expire(self, redis_mock, valkey):
        redis_mock.expire.return_value = 1
        assert valkey.expire("k", 60) is True

        redis_mock.expire.return_value = 0
        assert valkey.expire("missing", 60) is False

    def test_ttl(self, redis_mock, valkey):
        redis_mock.ttl.return_value = -2
        assert valkey.ttl("k") == -2

    def test_close(self, redis_mock, valkey):
        valkey.close()
        redis_mock.close.assert_called_once()
