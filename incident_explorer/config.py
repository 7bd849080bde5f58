"""
Connection settings.

The warehouse credentials live in a Java-style properties file:

    db.url=jdbc:mysql://localhost:3306/crime
    db.user=analyst
    db.password=secret

The file is read every time a connection is requested, so edits take effect
on the next query without restarting anything.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict, Optional

from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError

from .errors import ConfigError

DEFAULT_PROPERTIES = "db.properties"

# jdbc prefix -> SQLAlchemy drivername
JDBC_SCHEMES = {
    "jdbc:mysql://": "mysql+pymysql://",
    "jdbc:mariadb://": "mysql+pymysql://",
    "jdbc:postgresql://": "postgresql://",
}


@dataclass(frozen=True)
class ConnectionSettings:
    url: str
    user: Optional[str] = None
    password: Optional[str] = None

    def sqlalchemy_url(self) -> URL:
        try:
            url = make_url(_translate_jdbc(self.url))
        except ArgumentError as e:
            raise ConfigError(f"db.url is not a valid database URL: {self.url!r}") from e
        if url.get_backend_name() == "sqlite":
            return url
        if self.user and not url.username:
            url = url.set(username=self.user)
        if self.password and url.password is None:
            url = url.set(password=self.password)
        return url

    @property
    def backend(self) -> str:
        return self.sqlalchemy_url().get_backend_name()


def _translate_jdbc(url: str) -> str:
    url = url.strip()
    for prefix, scheme in JDBC_SCHEMES.items():
        if url.startswith(prefix):
            # query string options are JDBC driver flags (useSSL=..., serverTimezone=...)
            return scheme + url[len(prefix):].split("?", 1)[0]
    if url.startswith("jdbc:sqlite:"):
        return "sqlite:///" + url[len("jdbc:sqlite:"):]
    return url


ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}
KEY_TERMINATORS = "=: \t\f"


def _logical_lines(content: str):
    """Join natural lines ending in an odd number of backslashes with the next one."""
    pending = None
    for natural in content.splitlines():
        line = natural.lstrip(" \t\f")
        if pending is None:
            if not line or line[0] in "#!":
                continue
        else:
            line = pending + line
        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2:
            pending = line[:-1]
            continue
        pending = None
        yield line
    if pending is not None:
        yield pending


def _unescape(text: str) -> str:
    out = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch != "\\" or i + 1 == len(text):
            out.append(ch)
            i += 1
            continue
        nxt = text[i + 1]
        if nxt == "u":
            digits = text[i + 2:i + 6]
            if len(digits) != 4 or any(c not in "0123456789abcdefABCDEF" for c in digits):
                raise ConfigError(f"malformed \\uXXXX escape in {text!r}")
            out.append(chr(int(digits, 16)))
            i += 6
            continue
        out.append(ESCAPES.get(nxt, nxt))
        i += 2
    return "".join(out)


def parse_properties(content: str) -> Dict[str, str]:
    """
    Parse the text of a java.util.Properties file.

    Keys end at the first unescaped `=`, `:` or whitespace; `#`/`!` start a
    comment line; a trailing backslash continues the line; backslash escapes
    (including `\\:` and `\\uXXXX`) are decoded in keys and values.
    """
    props = {}
    for line in _logical_lines(content):
        end = 0
        while end < len(line) and line[end] not in KEY_TERMINATORS:
            end += 2 if line[end] == "\\" else 1
        end = min(end, len(line))
        key = line[:end]
        rest = line[end:].lstrip(" \t\f")
        if rest[:1] in ("=", ":"):
            rest = rest[1:].lstrip(" \t\f")
        props[_unescape(key)] = _unescape(rest)
    return props


def load_settings(path: Optional[str] = None) -> ConnectionSettings:
    path = path or os.environ.get("INCIDENT_DB_PROPERTIES", DEFAULT_PROPERTIES)
    try:
        with open(path, "r", encoding="utf-8") as f:
            props = parse_properties(f.read())
    except OSError as e:
        raise ConfigError(f"cannot read connection properties {path}: {e}") from e

    url = props.get("db.url")
    if not url:
        raise ConfigError(f"{path} does not define db.url")
    return ConnectionSettings(
        url=url,
        user=props.get("db.user") or None,
        password=props.get("db.password") or None,
    )
