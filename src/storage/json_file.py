"""
JSON file storage backend.

Default backend: writes the pool snapshot to a local JSON file.
"""

import json
import os
import shutil
import threading
from datetime import datetime
from typing import Any

from storage.base import (
    StorageBackend,
    StorageError,
    StorageReadError,
    StorageWriteError,
)


class JSONFileStorage(StorageBackend):
    """
    JSON file storage backend.

    Writes are atomic (temp file, then rename). Thread-safe operations.
    """

    def __init__(self, file_path: str = "pool_state.json"):
        """
        Initialize JSON file storage.

        Args:
            file_path: Path to the JSON file
        """
        self.file_path = file_path
        self._lock = threading.Lock()

    def load_state(self) -> dict[str, Any] | None:
        """
        Load the pool snapshot from the JSON file.

        Returns:
            Snapshot dictionary, or None if the file doesn't exist or is empty.

        Raises:
            StorageReadError: If reading or parsing fails
        """
        with self._lock:
            try:
                with open(self.file_path, encoding="utf-8") as f:
                    raw_data = f.read()
            except FileNotFoundError:
                return None
            except PermissionError as e:
                raise StorageReadError(f"Permission denied: {self.file_path}") from e
            except OSError as e:
                raise StorageReadError(f"Failed to read state: {e}") from e

            if not raw_data.strip():
                return None

            try:
                return json.loads(raw_data)
            except json.JSONDecodeError as e:
                raise StorageReadError(f"Invalid JSON format: {e}") from e

    def save_state(self, state: dict[str, Any]) -> None:
        """
        Save the pool snapshot to the JSON file.

        Raises:
            StorageWriteError: If serialization or writing fails
        """
        with self._lock:
            try:
                data = json.dumps(state, indent=2, ensure_ascii=False)
            except (TypeError, ValueError) as e:
                raise StorageWriteError(f"State is not JSON serializable: {e}") from e

            temp_path = f"{self.file_path}.tmp"
            try:
                with open(temp_path, "w", encoding="utf-8") as f:
                    f.write(data)
                os.replace(temp_path, self.file_path)
            except PermissionError as e:
                raise StorageWriteError(f"Permission denied: {self.file_path}") from e
            except OSError as e:
                raise StorageWriteError(f"OS error: {e}") from e

    def is_available(self) -> bool:
        """True if the file's directory exists and is writable."""
        directory = os.path.dirname(self.file_path) or "."
        if not os.path.exists(directory):
            return False
        return os.access(directory, os.W_OK)

    def get_info(self) -> dict[str, Any]:
        info = super().get_info()
        info.update({
            "file_path": self.file_path,
            "file_exists": os.path.exists(self.file_path),
        })

        if os.path.exists(self.file_path):
            try:
                stat = os.stat(self.file_path)
                info["file_size_bytes"] = stat.st_size
                info["last_modified"] = stat.st_mtime
            except OSError:
                pass

        return info

    def delete(self) -> bool:
        """
        Delete the storage file.

        Returns:
            True if deleted, False if the file didn't exist
        """
        with self._lock:
            try:
                os.remove(self.file_path)
                return True
            except FileNotFoundError:
                return False
            except OSError as e:
                raise StorageError(f"Delete failed: {e}") from e

    def backup(self, backup_path: str | None = None) -> str:
        """
        Copy the storage file aside.

        Args:
            backup_path: Destination (default: timestamped .backup next to the file)

        Returns:
            Path to the backup file

        Raises:
            StorageError: If there is nothing to back up or the copy fails
        """
        if backup_path is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            backup_path = f"{self.file_path}.{timestamp}.backup"

        with self._lock:
            if not os.path.exists(self.file_path):
                raise StorageError("No file to backup")
            try:
                shutil.copy2(self.file_path, backup_path)
            except OSError as e:
                raise StorageError(f"Backup failed: {e}") from e
        return backup_path
