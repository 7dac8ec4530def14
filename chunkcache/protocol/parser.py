"""
Protocol Parser Module

This module handles parsing of raw protocol commands and formatting of responses.
"""

from .commands import Command, CommandType, Response
from ..config.settings import settings


class ProtocolParser:
    """
    Parser for the chunkcache text protocol.

    Protocol Format:
        Request:  <COMMAND> [ARGS...]\n
        Response: <STATUS> [DATA]\n

    Commands:
        PUT <key> <value> [ttl]  -> OK stored | ERROR not stored
        GET <key>                -> OK <value> | ERROR key not found
        MGET <key> [<key> ...]   -> OK <key> <value> ... (found keys only)
        DELETE <key>             -> OK deleted | ERROR key not found
        EXISTS <key>             -> OK 1 | OK 0
        QUIT                     -> (connection closed)

    Constraints:
        - Keys: max 250 characters, no whitespace
        - Values: no whitespace, max settings.MAX_VALUE_LENGTH characters.
          Values may exceed the store's entry ceiling.
        - TTL: non-negative integer (0 = no expiration)
    """

    def __init__(self):
        """Initialize the parser with constraints from settings."""
        self.max_key_length = settings.MAX_KEY_LENGTH
        self.max_value_length = settings.MAX_VALUE_LENGTH

    def parse_request(self, data: str) -> Command:
        """
        Parse a raw request string into a Command object.

        Args:
            data: Raw request string (may include trailing newline)

        Returns:
            Command object representing the parsed request.
            Returns Command with type=UNKNOWN for invalid/malformed requests.

        Examples:
            >>> parser = ProtocolParser()
            >>> cmd = parser.parse_request("PUT mykey myvalue 60")
            >>> cmd.type == CommandType.PUT
            True
            >>> cmd.ttl
            60
        """
        raw = data.strip()
        if not raw:
            return Command(type=CommandType.UNKNOWN, raw=raw)

        parts = raw.split()
        command_name = parts[0].upper()

        if command_name == "PUT":
            return self._parse_put(parts, raw)
        if command_name == "MGET":
            return self._parse_mget(parts, raw)
        if command_name in ("GET", "DELETE", "EXISTS"):
            return self._parse_single_key(CommandType[command_name], parts, raw)
        if command_name == "QUIT":
            # QUIT takes no args
            if len(parts) == 1:
                return Command(type=CommandType.QUIT, raw=raw)
            return Command(type=CommandType.UNKNOWN, raw=raw)

        return Command(type=CommandType.UNKNOWN, raw=raw)

    def _parse_put(self, parts: list, raw: str) -> Command:
        """
        Parse a PUT command.

        Format: PUT <key> <value> [ttl]
        """
        if len(parts) < 3 or len(parts) > 4:
            return Command(type=CommandType.UNKNOWN, raw=raw)

        key, value = parts[1], parts[2]
        if len(key) > self.max_key_length or len(value) > self.max_value_length:
            return Command(type=CommandType.UNKNOWN, raw=raw)

        ttl = 0
        if len(parts) == 4:
            try:
                ttl = int(parts[3])
                if ttl < 0:
                    return Command(type=CommandType.UNKNOWN, raw=raw)
            except ValueError:
                return Command(type=CommandType.UNKNOWN, raw=raw)

        return Command(
            type=CommandType.PUT,
            key=key,
            value=value,
            ttl=ttl,
            raw=raw,
        )

    def _parse_single_key(self, command_type: CommandType, parts: list, raw: str) -> Command:
        """
        Parse GET, DELETE and EXISTS.

        Format: <COMMAND> <key>
        """
        if len(parts) != 2:
            return Command(type=CommandType.UNKNOWN, raw=raw)

        key = parts[1]
        if len(key) > self.max_key_length:
            return Command(type=CommandType.UNKNOWN, raw=raw)

        return Command(type=command_type, key=key, raw=raw)

    def _parse_mget(self, parts: list, raw: str) -> Command:
        """
        Parse an MGET command.

        Format: MGET <key> [<key> ...]
        """
        keys = parts[1:]
        if not keys or any(len(key) > self.max_key_length for key in keys):
            return Command(type=CommandType.UNKNOWN, raw=raw)

        return Command(type=CommandType.MGET, keys=keys, raw=raw)

    def format_response(self, response: Response) -> str:
        """
        Format a Response object into a protocol string.

        Returns:
            Formatted response string WITH trailing newline.

        Examples:
            >>> parser = ProtocolParser()
            >>> parser.format_response(Response.stored())
            'OK stored\\n'
            >>> parser.format_response(Response.error("key not found"))
            'ERROR key not found\\n'
        """
        prefix = response.status.value

        # If value is provided (GET), prefer it; otherwise use message
        if response.value is not None:
            body = response.value
        else:
            body = response.message

        # Ensure empty body still results in newline-terminated string
        if body:
            return f"{prefix} {body}\n"
        return f"{prefix}\n"
