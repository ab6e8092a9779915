"""A small TCP chat server and client on a length-prefixed packet protocol, with a URL splitter."""

__version__ = "0.1.0"