"""Reader for flat ``key=value`` property files (.properties, .wskprops)."""

from __future__ import annotations

from pathlib import Path

from .exceptions import PropertyFileError


_SEPARATORS = "=: \t"
_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}


def _unescape(text: str) -> str:
    """Resolve ``\\t``, ``\\n``, ``\\r``, ``\\f``, ``\\uXXXX`` and ``\\<char>``."""
    out: list[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch != "\\" or i + 1 >= len(text):
            out.append(ch)
            i += 1
            continue
        nxt = text[i + 1]
        if nxt == "u":
            digits = text[i + 2:i + 6]
            if len(digits) != 4 or any(c not in "0123456789abcdefABCDEF" for c in digits):
                raise PropertyFileError(
                    message=f"Malformed \\uXXXX escape: {text[i:i + 6]!r}",
                )
            out.append(chr(int(digits, 16)))
            i += 6
            continue
        out.append(_ESCAPES.get(nxt, nxt))
        i += 2
    return "".join(out)


def _split_entry(line: str) -> tuple[str, str]:
    """Split one logical line into unescaped key and value."""
    i = 0
    while i < len(line):
        ch = line[i]
        if ch == "\\":
            i += 2
            continue
        if ch in _SEPARATORS:
            break
        i += 1

    raw_key = line[:i]
    rest = line[i:].lstrip(" \t\f")
    if rest[:1] in ("=", ":"):
        rest = rest[1:].lstrip(" \t\f")

    return _unescape(raw_key), _unescape(rest)


def parse_properties(text: str) -> dict[str, str]:
    """
    Parse property-file text into a dict.

    Supports ``key=value``, ``key: value`` and ``key value`` entries,
    ``#`` and ``!`` comment lines, trailing-backslash continuation and
    backslash escapes in keys and values. Trailing whitespace of a value
    is kept. Later duplicates win.
    """
    result: dict[str, str] = {}
    pending = ""

    for raw in text.splitlines():
        line = raw.lstrip()
        if not pending and (not line or line[0] in "#!"):
            continue

        # An odd number of trailing backslashes continues the line
        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            pending += line[:-1]
            continue

        logical = pending + line
        pending = ""
        key, value = _split_entry(logical.rstrip("\r"))
        if key:
            result[key] = value

    if pending:
        key, value = _split_entry(pending)
        if key:
            result[key] = value

    return result


def load_properties(path: str | Path) -> dict[str, str]:
    """Read and parse a property file."""
    path = Path(path).expanduser()
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise PropertyFileError(
            message=f"Cannot read property file {path}",
            details={"path": str(path), "reason": str(exc)},
        ) from exc
    return parse_properties(text)


def require_keys(properties: dict[str, str], keys: list[str], source: str) -> None:
    """Raise PropertyFileError if any of ``keys`` is missing or blank."""
    missing = [k for k in keys if not properties.get(k)]
    if missing:
        raise PropertyFileError(
            message=f"Property file {source} is missing {', '.join(missing)}",
            details={"path": source, "missing": missing},
        )
