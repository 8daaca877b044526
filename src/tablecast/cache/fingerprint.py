"""Source file identity — content fingerprint and name key.

The fingerprint samples at most ~1024 evenly spaced bytes rather than hashing
the whole file, so large uploads hash in roughly constant time. Files with the
same name, size and modification time and a similar byte sample may collide.
"""

from __future__ import annotations

import mimetypes
import re
from dataclasses import dataclass, field
from pathlib import Path

_PRIME = 31
_MASK = 0x7FFFFFFF
_SAMPLE_SIZE = 1024
_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")


@dataclass(frozen=True)
class SourceFile:
    """An uploaded document.

    Attributes:
        name: Original file name (no directory).
        size: Size in bytes.
        last_modified: Modification time in epoch milliseconds.
        content: Raw file bytes.
        mime_type: MIME type, guessed from *name* when not given.
    """

    name: str
    size: int
    last_modified: int
    content: bytes = field(repr=False)
    mime_type: str = ""

    def __post_init__(self) -> None:
        if not self.mime_type:
            guessed, _ = mimetypes.guess_type(self.name)
            object.__setattr__(self, "mime_type", guessed or "application/octet-stream")

    @classmethod
    def from_path(cls, path: Path | str) -> SourceFile:
        """Read *path* into a SourceFile."""
        p = Path(path)
        content = p.read_bytes()
        stat = p.stat()
        return cls(
            name=p.name,
            size=len(content),
            last_modified=stat.st_mtime_ns // 1_000_000,
            content=content,
        )

    @property
    def suffix(self) -> str:
        return Path(self.name).suffix.lower()


def _to_base36(n: int) -> str:
    if n == 0:
        return "0"
    digits: list[str] = []
    while n:
        n, rem = divmod(n, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def compute_fingerprint(file: SourceFile) -> str:
    """Deterministic base-36 hash of sampled bytes plus name/size/mtime."""
    data = file.content
    length = len(data)
    h = 0

    if length:
        sample_size = min(_SAMPLE_SIZE, length)
        step = max(1, length // sample_size)
        for i in range(0, length, step):
            h = (h * _PRIME + data[i]) & _MASK

    for ch in f"{file.name}_{file.size}_{file.last_modified}":
        h = (h * _PRIME + ord(ch)) & _MASK

    return _to_base36(h)


def name_key(file_name: str) -> str:
    """Lowercased file name with every non-alphanumeric character removed."""
    return _NON_ALNUM_RE.sub("", file_name.lower())
