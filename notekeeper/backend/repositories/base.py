"""
Base Repository.

File-backed store holding one collection of records as a JSON array.

The whole collection is read on every load and rewritten on every
replace_all. Writes go to a temporary file in the same directory which is
then renamed over the real file, so the durable state is always either the
previous collection or the new one, never a partial write.

Load is self-healing:
    missing file          -> created as an empty array
    empty file            -> rewritten as an empty array
    JSON but not an array -> reset to an empty array (warning)
    undecodable content   -> copied to <file>.corrupt-<timestamp>, then reset

There is no locking. Two processes writing the same file race and the
last rename wins.
"""

import json
import os
import shutil
import tempfile
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Generic, TypeVar

from pydantic import ValidationError as PydanticValidationError

from notekeeper.backend.core.exceptions import CorruptStoreError
from notekeeper.backend.core.logging import get_logger
from notekeeper.backend.core.utils import backup_stamp
from notekeeper.backend.models.base import RecordModel

logger = get_logger(__name__)

ModelType = TypeVar("ModelType", bound=RecordModel)


class JsonArrayStore(Generic[ModelType]):
    """
    Base store with atomic load/replace-all of a JSON array.

    Subclasses should set the record class:

        class NoteStore(JsonArrayStore[Note]):
            model = Note
    """

    model: type[ModelType]

    def __init__(
        self,
        path: str | Path,
        indent: int = 2,
        fsync: bool = True,
        backup_corrupt: bool = True,
    ) -> None:
        self._path = Path(path)
        self._indent = indent
        self._fsync = fsync
        self._backup_corrupt = backup_corrupt

    @property
    def path(self) -> Path:
        """Location of the backing file."""
        return self._path

    def load(self) -> list[ModelType]:
        """
        Read the full collection.

        Returns:
            Records in stored order. Empty after any self-healing reset.

        Raises:
            OSError: If the file exists but cannot be read, or a reset or
                corruption backup cannot be written.
        """
        self._ensure_directory()

        try:
            raw = self._path.read_bytes()
        except FileNotFoundError:
            logger.info("Initializing store", extra={"path": str(self._path)})
            self._reset()
            return []

        try:
            return self._decode(raw)
        except CorruptStoreError as e:
            self._recover(e)
            return []

    def replace_all(self, items: Sequence[ModelType]) -> bool:
        """
        Persist items as the new durable collection.

        Args:
            items: Complete collection to store (list or tuple)

        Returns:
            True when the new collection is durable, False if the write
            failed. On failure the previous file is untouched and no
            temporary file is left behind.

        Raises:
            TypeError: If items is not a list or tuple
        """
        if not isinstance(items, (list, tuple)):
            raise TypeError(
                f"replace_all expects a list or tuple, got {type(items).__name__}"
            )

        try:
            records = [self._to_record(item) for item in items]
            payload = json.dumps(records, indent=self._indent, ensure_ascii=False)
            self._write_atomic(payload)
        except (OSError, TypeError, ValueError) as e:
            logger.error(
                "Failed to write store",
                extra={
                    "path": str(self._path),
                    "error": str(e),
                    "error_type": type(e).__name__,
                },
            )
            return False

        logger.debug(
            "Store written",
            extra={"path": str(self._path), "count": len(records)},
        )
        return True

    def backup_paths(self) -> list[Path]:
        """Corruption backups written next to the backing file, oldest first."""
        if not self._path.parent.is_dir():
            return []
        return sorted(self._path.parent.glob(f"{self._path.name}.corrupt-*"))

    def _decode(self, raw: bytes) -> list[ModelType]:
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CorruptStoreError(f"Store file is not valid UTF-8: {e}") from e

        if not text.strip():
            logger.info("Store file empty, writing empty collection", extra={"path": str(self._path)})
            self._reset()
            return []

        try:
            data = json.loads(text)
        except (ValueError, RecursionError) as e:
            # Oversized integers and deep nesting fail outside JSONDecodeError
            raise CorruptStoreError(f"Store file is not valid JSON: {e}") from e

        if not isinstance(data, list):
            logger.warning(
                "Store file is not a JSON array, resetting",
                extra={"path": str(self._path), "found_type": type(data).__name__},
            )
            self._reset()
            return []

        try:
            return [self.model.from_record(record) for record in data]
        except PydanticValidationError as e:
            raise CorruptStoreError(
                f"Store file holds invalid {self.model.__name__} records: "
                f"{e.error_count()} error(s)"
            ) from e

    def _recover(self, error: CorruptStoreError) -> None:
        """Back up the unreadable file, then reset to an empty collection."""
        backup_path = None
        if self._backup_corrupt:
            backup_path = self._path.with_name(f"{self._path.name}.corrupt-{backup_stamp()}")
            shutil.copy2(self._path, backup_path)

        logger.error(
            "Corrupt store detected, resetting to empty collection",
            extra={
                "path": str(self._path),
                "backup_path": str(backup_path) if backup_path else None,
                "code": error.code,
                "error": error.message,
            },
        )
        self._reset()

    def _reset(self) -> None:
        self._write_atomic(json.dumps([], indent=self._indent))

    def _to_record(self, item: Any) -> dict[str, Any]:
        if not isinstance(item, self.model):
            item = self.model.model_validate(item)
        return item.to_record()

    def _ensure_directory(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def _write_atomic(self, payload: str) -> None:
        """Write payload to a sibling temp file and rename it into place."""
        self._ensure_directory()
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.",
            suffix=".tmp",
            dir=self._path.parent,
        )
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                if self._fsync:
                    os.fsync(f.fileno())
            os.replace(tmp_path, self._path)
        except Exception:
            self._discard(tmp_path)
            raise
        if self._fsync and os.name == "posix":
            self._fsync_directory()

    def _fsync_directory(self) -> None:
        """Make the rename itself durable. Directories cannot be opened on Windows."""
        dir_fd = os.open(self._path.parent, os.O_RDONLY)
        try:
            os.fsync(dir_fd)
        finally:
            os.close(dir_fd)

    @staticmethod
    def _discard(tmp_path: Path) -> None:
        try:
            tmp_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(
                "Could not remove temporary file",
                extra={"path": str(tmp_path), "error": str(e)},
            )
