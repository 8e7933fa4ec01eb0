"""
Store manager for the canonical Pokedex dataset.

The dataset is a single JSON array read by the website with a plain fetch,
so every write replaces the file in one step.
"""

import json
import logging
import os
import stat
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterable, List, Tuple

from ..pipeline.base import CanonicalEntry, CanonicalStore, StoreWriteError

logger = logging.getLogger(__name__)

# tempfile creates files as 0600
DEFAULT_FILE_MODE = 0o644


class StoreManager:
    """
    Load, merge and persist the canonical dataset.

    Duplicate policy: an entry is rejected when the store already holds one
    with the same ``id``. Running the same pull request twice therefore adds
    nothing the second time.
    """

    def __init__(self, data_file: Path):
        """
        Initialize store manager.

        Args:
            data_file: Path of the dataset JSON file
        """
        self.data_file = Path(data_file)
        self.logger = logging.getLogger(__name__)

    def load(self) -> CanonicalStore:
        """
        Read the dataset.

        A missing, unreadable or malformed file yields an empty store.
        """
        try:
            text = self.data_file.read_text(encoding="utf-8")
        except FileNotFoundError:
            self.logger.warning(f"Pokedex data file {self.data_file} not found. Starting fresh.")
            return CanonicalStore()
        except (OSError, UnicodeDecodeError) as e:
            self.logger.warning(f"Pokedex data file {self.data_file} unreadable ({e}). Starting fresh.")
            return CanonicalStore()

        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            self.logger.warning(f"Pokedex data file is not valid JSON ({e}). Starting fresh.")
            return CanonicalStore()

        if not isinstance(document, list):
            self.logger.warning("Pokedex data file is not a JSON array. Starting fresh.")
            return CanonicalStore()

        entries: List[Dict[str, Any]] = []
        for index, record in enumerate(document):
            if not isinstance(record, dict):
                self.logger.warning(f"Dropping dataset record #{index}: not an object")
                continue
            if not self._valid_id(record.get("id")):
                self.logger.warning(
                    f"Dataset record #{index} has no integer id; it will be kept after the sorted entries"
                )
            entries.append(record)

        self.logger.info(f"Loaded {len(entries)} entries from {self.data_file}")
        return CanonicalStore(entries=entries)

    def merge(
        self, store: CanonicalStore, new_entries: Iterable[CanonicalEntry]
    ) -> Tuple[CanonicalStore, bool]:
        """
        Append entries whose ``id`` is not yet in the store.

        Args:
            store: Store to extend in place
            new_entries: Validated entries from this run, in change-set order

        Returns:
            ``(store, changed)`` where ``changed`` is True if anything was added
        """
        known_ids = {entry_id for entry_id in store.ids() if self._valid_id(entry_id)}
        added = 0

        for entry in new_entries:
            if entry.id in known_ids:
                self.logger.info(f"{entry.name} (ID: {entry.id}) already exists. Skipping addition.")
                continue
            store.entries.append(entry.to_dict())
            known_ids.add(entry.id)
            added += 1
            self.logger.info(f"Successfully added entry for {entry.name}.")

        return store, added > 0

    def serialize(self, store: CanonicalStore) -> str:
        """Dataset text, sorted ascending by id (stable).

        Records without an integer id go last, in their existing order.
        """
        ordered = sorted(store.entries, key=self._sort_key)
        return json.dumps(ordered, indent=2, ensure_ascii=False) + "\n"

    def persist(self, store: CanonicalStore) -> None:
        """
        Replace the dataset file with the serialized store.

        The new content is written to a temporary file next to the dataset
        and moved over it with ``os.replace``, so readers see either the old
        file or the complete new one.

        Raises:
            StoreWriteError: If the file cannot be written; the existing
                dataset is left untouched
        """
        content = self.serialize(store)
        tmp_path = None

        try:
            self.data_file.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                prefix=f".{self.data_file.name}.",
                suffix=".tmp",
                dir=self.data_file.parent,
                delete=False,
            ) as handle:
                tmp_path = Path(handle.name)
                handle.write(content)
                handle.flush()
                os.fsync(handle.fileno())
            os.chmod(tmp_path, self._file_mode())
            os.replace(tmp_path, self.data_file)
            tmp_path = None
        except OSError as e:
            raise StoreWriteError(f"Failed to write {self.data_file}: {e}") from e
        finally:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink()

        self.logger.info(f"Successfully updated {self.data_file}. Total entries: {len(store)}")

    def _file_mode(self) -> int:
        """Mode for the new dataset: the current file's, or 0o644 under the umask"""
        try:
            return stat.S_IMODE(self.data_file.stat().st_mode)
        except FileNotFoundError:
            umask = os.umask(0)
            os.umask(umask)
            return DEFAULT_FILE_MODE & ~umask

    @classmethod
    def _sort_key(cls, record: Dict[str, Any]) -> Tuple[int, int]:
        entry_id = record.get("id")
        if cls._valid_id(entry_id):
            return (0, entry_id)
        return (1, 0)

    @staticmethod
    def _valid_id(value: Any) -> bool:
        return isinstance(value, int) and not isinstance(value, bool)
