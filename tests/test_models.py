"""
Tests for value types and reply parsing.

Tests cover:
- Attribute map construction and the duplicate-key rule
- CryptoAlgorithm names
- EncryptedSecret wire conversion and validation
- Parsing of daemon replies
"""
import pytest

from secret_service import (
    CryptoAlgorithm,
    DuplicateAttributeError,
    EncryptedSecret,
    ParseError,
    PromptHandle,
    SearchResult,
    make_attributes,
)
from secret_service.models import parse_attributes, parse_object_path, parse_object_paths


class TestMakeAttributes:
    """Tests for make_attributes."""

    def test_from_mapping(self):
        assert make_attributes({"a": "1", "b": "2"}) == {"a": "1", "b": "2"}

    def test_from_pairs(self):
        assert make_attributes([("a", "1"), ("b", "2")]) == {"a": "1", "b": "2"}

    def test_repeated_identical_pair_kept_once(self):
        assert make_attributes([("a", "1"), ("a", "1")]) == {"a": "1"}

    def test_conflicting_duplicate_raises(self):
        with pytest.raises(DuplicateAttributeError) as excinfo:
            make_attributes([("a", "1"), ("b", "2"), ("a", "3")])
        assert excinfo.value.key == "a"
        assert excinfo.value.first == "1"
        assert excinfo.value.second == "3"

    def test_duplicate_error_is_value_error(self):
        with pytest.raises(ValueError):
            make_attributes([("a", "1"), ("a", "2")])

    def test_non_string_value(self):
        with pytest.raises(TypeError):
            make_attributes({"port": 22})

    def test_empty(self):
        assert make_attributes({}) == {}


class TestCryptoAlgorithm:
    """Tests for algorithm names."""

    def test_wire_names(self):
        assert CryptoAlgorithm.PLAIN.value == "plain"
        assert CryptoAlgorithm.DH.value == "dh-ietf1024-sha256-aes128-cbc-pkcs7"

    @pytest.mark.parametrize("name,expected", [
        ("plain", CryptoAlgorithm.PLAIN),
        ("DH", CryptoAlgorithm.DH),
        ("dh-ietf1024-sha256-aes128-cbc-pkcs7", CryptoAlgorithm.DH),
        (CryptoAlgorithm.PLAIN, CryptoAlgorithm.PLAIN),
    ])
    def test_from_name(self, name, expected):
        assert CryptoAlgorithm.from_name(name) is expected

    def test_unknown(self):
        with pytest.raises(ValueError):
            CryptoAlgorithm.from_name("rsa")


class TestEncryptedSecret:
    """Tests for the (oayays) secret struct."""

    def test_to_dbus(self):
        secret = EncryptedSecret("/s/1", b"iv", b"ct", "text/plain")
        assert secret.to_dbus() == ("/s/1", b"iv", b"ct", "text/plain")

    def test_from_dbus(self):
        secret = EncryptedSecret.from_dbus(("/s/1", b"iv", bytearray(b"ct"), "text/plain"))
        assert secret.value == b"ct"
        assert isinstance(secret.value, bytes)

    def test_value_not_in_repr(self):
        assert "hunter2" not in repr(EncryptedSecret("/s/1", b"", b"hunter2", "text/plain"))

    @pytest.mark.parametrize("data", [
        None,
        ("/s/1", b"", b""),
        ("/s/1", "iv", b"", "text/plain"),
        (1, b"", b"", "text/plain"),
    ])
    def test_malformed(self, data):
        with pytest.raises(ParseError):
            EncryptedSecret.from_dbus(data)


class TestReplyParsing:
    """Tests for reply validation helpers."""

    def test_attributes(self):
        assert parse_attributes({"a": "b"}) == {"a": "b"}

    def test_attributes_wrong_shape(self):
        with pytest.raises(ParseError):
            parse_attributes([("a", "b")])

    def test_attributes_wrong_value_type(self):
        with pytest.raises(ParseError):
            parse_attributes({"a": 1})

    def test_object_paths(self):
        assert parse_object_paths(("/a", "/b")) == ["/a", "/b"]

    def test_object_paths_wrong_shape(self):
        with pytest.raises(ParseError):
            parse_object_paths("/a")

    def test_object_path(self):
        assert parse_object_path("/") == "/"
        with pytest.raises(ParseError):
            parse_object_path("relative")


class TestSmallTypes:
    """Tests for PromptHandle and SearchResult."""

    def test_prompt_needed(self):
        assert PromptHandle("/org/freedesktop/secrets/prompt/p1").needed
        assert not PromptHandle("/").needed

    def test_search_result(self):
        result = SearchResult(unlocked=[1], locked=[2, 3])
        assert len(result) == 3
        assert result.all() == [1, 2, 3]
