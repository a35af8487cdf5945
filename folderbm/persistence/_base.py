"""Base JSON persistence store."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

from ..errors import CorruptStoreError, PersistenceFailedError
from ..log import logger


class JsonStore:
    """Simple JSON file store with atomic write.

    Subclasses override ``_default()`` to provide the empty-state value
    (``{}`` for dicts, ``[]`` for lists).
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        return self.path.exists()

    # -- core I/O -------------------------------------------------------------

    def load_raw(self) -> dict | list:
        """Read and parse the JSON file, returning ``_default()`` when it is absent.

        Raises ``CorruptStoreError`` when the content is not valid JSON and
        ``PersistenceFailedError`` when the file exists but cannot be read.
        """
        if not self.exists():
            return self._default()
        try:
            text = self.path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise CorruptStoreError(str(self.path), "not UTF-8 text") from exc
        except OSError as exc:
            raise PersistenceFailedError(
                str(self.path), exc.strerror or str(exc)
            ) from exc
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise CorruptStoreError(
                str(self.path), f"{exc.msg} at line {exc.lineno}"
            ) from exc
        logger.debug("loaded JSON store from %s", self.path)
        return data

    def save_raw(self, data: dict | list, *, sort_keys: bool = False) -> None:
        """Write *data* as pretty-printed JSON, creating parents as needed.

        The file is replaced in one step: content goes to a temporary file in
        the same directory which is then renamed over the target.
        """
        payload = self._encode(data, sort_keys)
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f"{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "wb") as fh:
                fh.write(payload)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            self._discard(tmp_name)
            raise PersistenceFailedError(
                str(self.path), exc.strerror or str(exc)
            ) from exc
        except BaseException:
            self._discard(tmp_name)
            raise
        logger.debug("saved JSON store to %s", self.path)

    @staticmethod
    def _encode(data: dict | list, sort_keys: bool) -> bytes:
        """Serialise *data* to UTF-8 JSON bytes.

        Undecodable file names reach Python as lone surrogates, which UTF-8
        cannot carry.  Such data is written with ``\\uXXXX`` escapes instead,
        and ``json.loads`` turns those back into the same strings.
        """
        text = json.dumps(data, indent=2, ensure_ascii=False, sort_keys=sort_keys)
        try:
            return (text + "\n").encode("utf-8")
        except UnicodeEncodeError:
            logger.debug("escaping non-UTF-8 text in JSON output")
            text = json.dumps(data, indent=2, ensure_ascii=True, sort_keys=sort_keys)
            return (text + "\n").encode("ascii")

    @staticmethod
    def _discard(tmp_name: str | None) -> None:
        if tmp_name is None:
            return
        try:
            os.unlink(tmp_name)
        except OSError:
            logger.debug("could not remove %s", tmp_name, exc_info=True)

    # -- override point -------------------------------------------------------

    def _default(self) -> dict | list:  # noqa: PLR6301
        """Return the empty-state value for this store (dict by default)."""
        return {}
