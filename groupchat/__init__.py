"""Single-room group chat service: accounts, token sessions and ordered message history."""

__version__ = "0.1.0"
