"""Remoting codec and TCP client, request headers, response futures and utilities for a message-queue admin client."""

__version__ = "0.1.0"