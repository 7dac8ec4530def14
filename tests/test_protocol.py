"""
Tests for the Protocol Parser

These tests verify the ProtocolParser class:
- parse_request(): Parse raw commands into Command objects
- format_response(): Format Response objects into protocol strings

Run with: python -m pytest tests/test_protocol.py -v
"""

import pytest
from chunkcache.config.settings import settings
from chunkcache.protocol.parser import ProtocolParser
from chunkcache.protocol.commands import Command, CommandType, Response, ResponseStatus


class TestParseRequestPUT:
    """Test parsing PUT commands."""

    def test_parse_put_basic(self, parser: ProtocolParser):
        cmd = parser.parse_request("PUT key value")

        assert cmd.type == CommandType.PUT
        assert cmd.key == "key"
        assert cmd.value == "value"
        assert cmd.ttl == 0

    def test_parse_put_with_ttl(self, parser: ProtocolParser):
        cmd = parser.parse_request("PUT key value 60\n")

        assert cmd.type == CommandType.PUT
        assert cmd.ttl == 60

    def test_parse_put_case_insensitive(self, parser: ProtocolParser):
        for variant in ["put", "PUT", "Put", "pUt"]:
            cmd = parser.parse_request(f"{variant} key value")
            assert cmd.type == CommandType.PUT, f"Failed for '{variant}'"

    @pytest.mark.parametrize("raw", [
        "PUT",
        "PUT key",
        "PUT key value abc",
        "PUT key value -1",
        "PUT key value 1 extra",
    ])
    def test_parse_put_invalid(self, parser: ProtocolParser, raw: str):
        assert parser.parse_request(raw).type == CommandType.UNKNOWN

    def test_parse_put_value_larger_than_store_entry(self, parser: ProtocolParser):
        """Test values beyond the store's entry ceiling are accepted by the parser."""
        value = "v" * (settings.MAX_ENTRY_SIZE + 1)
        cmd = parser.parse_request(f"PUT key {value}")

        assert cmd.type == CommandType.PUT
        assert cmd.value == value

    def test_parse_put_key_too_long(self, parser: ProtocolParser):
        key = "k" * (settings.MAX_KEY_LENGTH + 1)
        assert parser.parse_request(f"PUT {key} value").type == CommandType.UNKNOWN


class TestParseRequestKeys:
    """Test parsing GET, DELETE, EXISTS and MGET."""

    @pytest.mark.parametrize("name", ["GET", "DELETE", "EXISTS"])
    def test_single_key(self, parser: ProtocolParser, name: str):
        cmd = parser.parse_request(f"{name.lower()} mykey")

        assert cmd.type == CommandType[name]
        assert cmd.key == "mykey"

    @pytest.mark.parametrize("name", ["GET", "DELETE", "EXISTS"])
    def test_single_key_wrong_arity(self, parser: ProtocolParser, name: str):
        assert parser.parse_request(name).type == CommandType.UNKNOWN
        assert parser.parse_request(f"{name} a b").type == CommandType.UNKNOWN

    def test_mget(self, parser: ProtocolParser):
        cmd = parser.parse_request("MGET a b c")

        assert cmd.type == CommandType.MGET
        assert cmd.keys == ["a", "b", "c"]
        assert cmd.is_valid

    def test_mget_without_keys(self, parser: ProtocolParser):
        assert parser.parse_request("MGET").type == CommandType.UNKNOWN

    def test_quit(self, parser: ProtocolParser):
        assert parser.parse_request("QUIT").type == CommandType.QUIT
        assert parser.parse_request("QUIT now").type == CommandType.UNKNOWN

    @pytest.mark.parametrize("raw", ["", "   ", "FETCH key"])
    def test_unknown(self, parser: ProtocolParser, raw: str):
        cmd = parser.parse_request(raw)
        assert cmd.type == CommandType.UNKNOWN
        assert not cmd.is_valid


class TestFormatResponse:
    """Test format_response()."""

    def test_stored(self, parser: ProtocolParser):
        assert parser.format_response(Response.stored()) == "OK stored\n"

    def test_not_stored(self, parser: ProtocolParser):
        assert parser.format_response(Response.not_stored()) == "ERROR not stored\n"

    def test_value(self, parser: ProtocolParser):
        assert parser.format_response(Response.value_response("hello")) == "OK hello\n"

    def test_key_not_found(self, parser: ProtocolParser):
        assert parser.format_response(Response.key_not_found()) == "ERROR key not found\n"

    def test_exists(self, parser: ProtocolParser):
        assert parser.format_response(Response.exists_response(True)) == "OK 1\n"
        assert parser.format_response(Response.exists_response(False)) == "OK 0\n"

    def test_values(self, parser: ProtocolParser):
        response = Response.values_response({"a": "1", "c": "3"})
        assert parser.format_response(response) == "OK a 1 c 3\n"

    def test_values_empty(self, parser: ProtocolParser):
        assert parser.format_response(Response.values_response({})) == "OK\n"


class TestCommand:
    """Test Command validity rules."""

    def test_put_requires_value(self):
        assert not Command(type=CommandType.PUT, key="k").is_valid
        assert Command(type=CommandType.PUT, key="k", value="v").is_valid

    def test_response_status(self):
        assert Response.ok().status == ResponseStatus.OK
        assert Response.error("x").status == ResponseStatus.ERROR
