"""Splitting of URL strings into scheme, user info, domain, port, path, query and fragment."""

from __future__ import annotations

from dataclasses import dataclass, field

_FIELD_DELIMITERS = "/?#:@"
_PATH_DELIMITERS = "/?#:"
_DOMAIN_MARKERS = "./@"
_DIGITS = "0123456789"


def _find_first_of(text: str, chars: str, start: int = 0) -> int:
    """Index of the first character of text at or after start that is in chars, or -1."""
    return next((index for index, char in enumerate(text[start:], start) if char in chars), -1)


def _take_field(text: str) -> tuple[str, str, bool]:
    """Split off one field; return its value, the remaining text and whether parsing ends."""
    end = _find_first_of(text, _FIELD_DELIMITERS, 1)
    if end < 0:
        return text[1:], "", True
    if text[:1] in tuple(_FIELD_DELIMITERS):
        return text[1:end], text[end:], False
    return text[:end], text[end:], False


def _take_segment(text: str) -> tuple[str, str, bool]:
    """Split off one path segment after its leading delimiter."""
    end = _find_first_of(text, _PATH_DELIMITERS, 1)
    if end < 0:
        return text[1:], "", True
    return text[1:end], text[end:], False


def _parse_port(text: str) -> tuple[int, int] | None:
    """Collect every digit of text as a port; return the port and the digit count, or None."""
    digits = "".join(char for char in text if char in _DIGITS)
    if not digits:
        return None
    value = int(digits)
    if value > 0xFFFF:
        return None
    return value, len(digits)


@dataclass
class URL:
    """The parts of a parsed URL; empty strings, port 0 and an empty path when absent."""

    scheme: str = ""
    user_info: str = ""
    domain: str = ""
    port: int = 0
    path: list[str] = field(default_factory=list)
    query: str = ""
    fragment: str = ""

    def _reset(self) -> None:
        self.scheme = ""
        self.user_info = ""
        self.domain = ""
        self.port = 0
        self.path = []
        self.query = ""
        self.fragment = ""

    def parse(self, url: str) -> URL:
        """Fill the parts from the string and return self.

        Raises ValueError when the string holds a part the parser cannot place.
        """
        self._reset()
        colon = url.find(":")
        head = url if colon < 0 else url[:colon]

        if not any(char in _DOMAIN_MARKERS for char in head):
            self.scheme = head
            rest = "" if colon < 0 else url[colon:]
            if rest.startswith("://"):
                rest = rest[3:]
                at = rest.find("@")
                if at >= 0:
                    self.user_info = rest[:at]
                    self._parse_rest(rest[at:])
                else:
                    self._parse_rest("@" + rest)
            elif rest.startswith(":"):
                at = rest.find("@")
                if at >= 0:
                    body = rest[1:]
                    self.user_info = body[:at - 1]
                    self._parse_rest(":" + body[at:])
                else:
                    self._parse_rest(rest)
        else:
            at = head.find("@")
            if at >= 0:
                self.user_info = url[:at]
                self._parse_rest(url[at:])
            else:
                self._parse_rest("@" + url)
        return self

    def _parse_rest(self, text: str) -> None:
        while text and any(char not in _PATH_DELIMITERS for char in text):
            head = text[0]
            done = False
            if head == "@":
                self.domain, text, done = _take_field(text)
            elif head == ":":
                port = _parse_port(text)
                if port is not None:
                    self.port, length = port
                    text = text[length + 1:]
                else:
                    segment, text, done = _take_segment(text)
                    self.path.append(segment)
            elif head == "/":
                segment, text, done = _take_segment(text)
                self.path.append(segment)
            elif head == "?":
                if text[1:3] != "q=":
                    raise ValueError(f"unsupported query in URL: {text!r}")
                self.query, text, done = _take_field(text[3:])
            elif head == "#":
                self.fragment, text, done = _take_field(text)
            else:
                raise ValueError(f"unexpected text in URL: {text!r}")
            if done:
                return


def parse_url(url: str) -> URL:
    """Parse the string into a new URL."""
    return URL().parse(url)