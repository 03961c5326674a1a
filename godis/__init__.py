"""Building blocks of a Redis-protocol server and client: replies, parser, pub/sub and utilities."""

__version__ = "0.1.0"