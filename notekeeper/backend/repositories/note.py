"""
Note Repository.

Data access layer for notes. The only sanctioned path for reading and
writing the notes file.
"""

from notekeeper.backend.models.note import Note
from notekeeper.backend.repositories.base import JsonArrayStore


class NoteStore(JsonArrayStore[Note]):
    """
    Store for Note records.

    Inherits atomic load/replace_all from JsonArrayStore.
    """

    model = Note

    @classmethod
    def from_config(cls) -> "NoteStore":
        """Build a store from storage.yaml and NOTEKEEPER_DATA_FILE."""
        from notekeeper.backend.core.config import get_app_config, get_data_file_path

        storage = get_app_config().storage
        return cls(
            get_data_file_path(),
            indent=storage.indent,
            fsync=storage.fsync,
            backup_corrupt=storage.backup_corrupt,
        )
