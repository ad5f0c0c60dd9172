"""Reading thunk files and replacing them atomically."""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path

from ..errors import ThunkUnwritable


class ThunkStore:
    """Loads thunk text verbatim and writes it back through a same-directory rename."""

    def read(self, path: Path) -> str:
        # Bytes are decoded directly so CRLF thunks round-trip unchanged.
        try:
            return Path(path).read_bytes().decode("utf-8")
        except FileNotFoundError as exc:
            raise ThunkUnwritable(f"Thunk not found: {path}") from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise ThunkUnwritable(f"Unable to read thunk {path}: {exc}") from exc

    def write(self, path: Path, text: str) -> None:
        """Replace ``path`` with ``text`` without ever truncating it in place."""
        path = Path(path)
        temp_path: Path | None = None
        try:
            with tempfile.NamedTemporaryFile(
                mode="wb",
                dir=path.parent,
                prefix=f".{path.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                temp_path = Path(handle.name)
                handle.write(text.encode("utf-8"))
                handle.flush()
                os.fsync(handle.fileno())
            if path.exists():
                shutil.copymode(path, temp_path)
            os.replace(temp_path, path)
        except OSError as exc:
            if temp_path is not None:
                temp_path.unlink(missing_ok=True)
            raise ThunkUnwritable(f"Unable to write thunk {path}: {exc}") from exc


__all__ = ["ThunkStore"]
