"""
Unit tests for configuration management.
"""

import pytest
from unittest.mock import patch
import os

from symbolicator.models.cache import CachePolicyKind


def test_settings_loads_from_environment():
    """Test that settings can be loaded from environment variables."""
    with patch.dict(os.environ, {
        'REDIS_URL': 'redis://localhost:6379/0',
        'REPORT_QUEUE_KEY': 'errors:resolved',
        'MAP_CACHE_POLICY': 'ttl',
        'MAP_CACHE_TTL_SECONDS': '120',
        'MAP_FETCH_TIMEOUT_SECONDS': '2.5',
        'MAP_FETCH_RETRIES': '5',
        'MAP_ROOT': '/srv/static',
        'LOG_LEVEL': 'DEBUG',
    }):
        from symbolicator.config import Settings
        settings = Settings()

        assert settings.redis_url == 'redis://localhost:6379/0'
        assert settings.report_queue_key == 'errors:resolved'
        assert settings.map_cache_policy == CachePolicyKind.TTL
        assert settings.map_cache_ttl_seconds == 120
        assert settings.map_fetch_timeout_seconds == 2.5
        assert settings.map_fetch_retries == 5
        assert settings.map_root == '/srv/static'
        assert settings.log_level == 'DEBUG'


def test_settings_has_default_values():
    """Test that settings have appropriate default values."""
    with patch.dict(os.environ, {}, clear=True):
        from symbolicator.config import Settings
        settings = Settings(_env_file=None)

        assert settings.redis_url is None
        assert settings.report_queue_key == 'error_reports:resolved'
        assert settings.map_cache_policy == CachePolicyKind.UNBOUNDED
        assert settings.map_fetch_timeout_seconds == 10.0
        assert settings.map_fetch_retries == 3
        assert settings.map_root is None
        assert settings.log_level == 'INFO'
        assert settings.allowed_origins == ['*']
        assert settings.map_allowed_hosts == ['*']


def test_allowed_origins_from_json_list():
    """Test list settings are parsed from JSON."""
    with patch.dict(os.environ, {
        'ALLOWED_ORIGINS': '["https://shop.example.com", "https://admin.example.com"]',
    }):
        from symbolicator.config import Settings
        settings = Settings()

        assert settings.allowed_origins == ["https://shop.example.com", "https://admin.example.com"]


@pytest.mark.parametrize(
    "policy,expected_kind",
    [
        ('unbounded', CachePolicyKind.UNBOUNDED),
        ('max-entries', CachePolicyKind.MAX_ENTRIES),
        ('ttl', CachePolicyKind.TTL),
    ],
)
def test_cache_policy_from_settings(policy, expected_kind):
    """Test the flat cache settings build a CachePolicy."""
    with patch.dict(os.environ, {
        'MAP_CACHE_POLICY': policy,
        'MAP_CACHE_MAX_ENTRIES': '25',
        'MAP_CACHE_TTL_SECONDS': '60',
    }):
        from symbolicator.config import Settings
        cache_policy = Settings().cache_policy()

        assert cache_policy.kind == expected_kind
        if expected_kind == CachePolicyKind.MAX_ENTRIES:
            assert cache_policy.max_entries == 25
        if expected_kind == CachePolicyKind.TTL:
            assert cache_policy.ttl_seconds == 60


def test_invalid_cache_policy_rejected():
    """Test an unknown cache policy name."""
    with patch.dict(os.environ, {'MAP_CACHE_POLICY': 'lfu'}):
        from symbolicator.config import Settings

        with pytest.raises(ValueError):
            Settings()


def test_map_allowed_hosts_from_json_list():
    """Test the source map host allow list is read from the environment."""
    with patch.dict(os.environ, {
        'MAP_ALLOWED_HOSTS': '["cdn.example.com", "*.static.example.com"]',
    }):
        from symbolicator.config import Settings
        settings = Settings()

        assert settings.map_allowed_hosts == ["cdn.example.com", "*.static.example.com"]
