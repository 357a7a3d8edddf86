"""Tests for shared/keys.py."""

import pytest

from shared.keys import InvalidKeyError, Key, replace_key, unique_keys


class TestKey:
    def test_encode_decode(self):
        """An encoded key should decode to the same key."""
        key = Key(kind="Thread", id=42)
        assert Key.decode(key.encode()) == key

    def test_encoding_is_url_safe(self):
        """External ids should be usable in a URL path."""
        encoded = Key(kind="User", id=1234567890).encode()
        assert "=" not in encoded
        assert "/" not in encoded
        assert "+" not in encoded

    def test_decode_checks_kind(self):
        """Decoding with a kind should reject keys of another kind."""
        encoded = Key(kind="Event", id=7).encode()
        with pytest.raises(InvalidKeyError):
            Key.decode(encoded, kind="Thread")

    @pytest.mark.parametrize("encoded", ["", "not-a-key", "!!!", Key(kind="User", id=1).encode()[:-2]])
    def test_decode_rejects_garbage(self, encoded):
        """Malformed ids should raise a not-found error."""
        with pytest.raises(InvalidKeyError) as exc_info:
            Key.decode(encoded, kind="User")
        assert exc_info.value.status_code == 404

    def test_keys_are_hashable(self):
        assert len({Key(kind="User", id=1), Key(kind="User", id=1)}) == 1


class TestKeyLists:
    def test_replace_key_drops_duplicates(self):
        """Replacing with a key already present should keep it once, in place."""
        a, b, c = (Key(kind="User", id=i) for i in (1, 2, 3))
        assert replace_key([a, b, c], b, a) == [a, c]

    def test_replace_key_missing(self):
        a, b, c = (Key(kind="User", id=i) for i in (1, 2, 3))
        assert replace_key([a, b], c, a) == [a, b]

    def test_unique_keys_keeps_order(self):
        a, b = Key(kind="User", id=1), Key(kind="User", id=2)
        assert unique_keys([b, a, b, a]) == [b, a]
