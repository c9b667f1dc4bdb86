"""Filesystem-safe names for archive folders and files."""

import re

MAX_NAME_LENGTH = 100
FALLBACK_NAME = "Untitled"

# Characters rejected by common filesystems, plus control characters
ILLEGAL_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f\x7f]')
WHITESPACE = re.compile(r"\s+")

# Longest tail after the last dot still treated as an extension
MAX_EXTENSION_LENGTH = 16


def _clean(text: str) -> str:
    name = WHITESPACE.sub(" ", text or "")
    name = ILLEGAL_CHARS.sub("-", name)
    return name.strip()


def sanitize_name(
    text: str,
    max_length: int = MAX_NAME_LENGTH,
    fallback: str = FALLBACK_NAME,
) -> str:
    """Derive a safe folder or file name from free text.

    Illegal characters become "-", whitespace runs collapse to one space,
    and the result is trimmed and cut to ``max_length``. Idempotent.
    Names left empty, or made only of dots, are replaced by ``fallback``.
    """
    name = _clean(text)[:max_length].strip()
    if not name.strip("."):
        return fallback
    return name


def sanitize_filename(name: str, max_length: int = MAX_NAME_LENGTH) -> str:
    """Like ``sanitize_name`` but keeps the extension inside the limit."""
    clean = _clean(name)
    stem, dot, ext = clean.rpartition(".")

    if dot and stem.strip(".") and 0 < len(ext) <= MAX_EXTENSION_LENGTH and " " not in ext:
        suffix = f".{ext}"
    else:
        stem, suffix = clean, ""

    return sanitize_name(stem, max_length=max_length - len(suffix)) + suffix


def join_path(*segments: str) -> str:
    """Join archive path segments with forward slashes."""
    return "/".join(s.strip("/") for s in segments if s)


class PathRegistry:
    """Hand out archive paths that are unique within one archive.

    Comparison ignores case so the archive unpacks cleanly on
    case-insensitive filesystems. Every claimed path also reserves its
    parent folders, so a file can never share a name with a folder. A
    colliding name gets " (2)", " (3)", ... appended to its stem; folder
    names are never split at a dot.
    """

    def __init__(self, max_length: int = MAX_NAME_LENGTH) -> None:
        self.max_length = max_length
        self._claimed: set[str] = set()

    def __contains__(self, path: str) -> bool:
        return path.casefold() in self._claimed

    def claim(self, path: str, is_folder: bool = False) -> str:
        """Reserve ``path`` or the first free numbered variant of it."""
        parent, _, name = path.rpartition("/")
        candidate = path
        counter = 2

        while candidate in self:
            candidate = join_path(parent, self._numbered(name, counter, is_folder))
            counter += 1

        self._claimed.add(candidate.casefold())
        while parent:
            self._claimed.add(parent.casefold())
            parent = parent.rpartition("/")[0]
        return candidate

    def _numbered(self, name: str, counter: int, is_folder: bool) -> str:
        marker = f" ({counter})"
        stem, suffix = name, ""

        if not is_folder:
            base, dot, ext = name.rpartition(".")
            if dot and base:
                stem, suffix = base, f".{ext}"

        room = max(self.max_length - len(marker) - len(suffix), 1)
        return f"{stem[:room].rstrip()}{marker}{suffix}"
