from __future__ import annotations


class MalformedCommand(ValueError):
    """Inbound frame could not be parsed into a known command."""


class Unauthorized(ValueError):
    """Command requires host privileges the connection does not have."""


class InvalidArgument(ValueError):
    pass


class InvalidPermutation(InvalidArgument):
    pass
