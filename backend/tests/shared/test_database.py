"""Tests for shared/database.py."""

from unittest.mock import MagicMock, patch

import pytest

from shared.config import Settings
from shared.database import get_supabase_client, reset_client_cache


def supabase_settings(**overrides) -> Settings:
    values = {
        "supabase_url": "https://test.supabase.co",
        "supabase_service_role_key": "service-key",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestSupabaseClient:
    def setup_method(self):
        """Reset cache before each test."""
        reset_client_cache()

    @patch("shared.database.create_client")
    def test_creates_service_client(self, mock_create):
        """Should create client with service role key."""
        mock_create.return_value = MagicMock()

        client = get_supabase_client(supabase_settings())

        assert client is mock_create.return_value
        mock_create.assert_called_once_with("https://test.supabase.co", "service-key")

    @patch("shared.database.create_client")
    def test_client_is_cached(self, mock_create):
        """Should return the same client for the same project."""
        settings = supabase_settings()

        assert get_supabase_client(settings) is get_supabase_client(settings)
        assert mock_create.call_count == 1

    @patch("shared.database.create_client")
    def test_reset_cache(self, mock_create):
        mock_create.side_effect = [MagicMock(), MagicMock()]
        settings = supabase_settings()

        first = get_supabase_client(settings)
        reset_client_cache()

        assert get_supabase_client(settings) is not first

    def test_missing_configuration(self):
        """Should raise if the URL or key is not configured."""
        with pytest.raises(RuntimeError, match="Supabase configuration missing"):
            get_supabase_client(supabase_settings(supabase_url=""))
        with pytest.raises(RuntimeError, match="Supabase configuration missing"):
            get_supabase_client(supabase_settings(supabase_service_role_key=""))
