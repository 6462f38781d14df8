"""Job-scoped storage for typed data and staged photo bytes."""

import io
import json
import logging
import shutil
from pathlib import Path
from typing import Any, BinaryIO, Protocol, TypeVar
from urllib.parse import quote
from uuid import UUID

logger = logging.getLogger(__name__)


class JobStoreError(Exception):
    """Raised when job data or blobs cannot be read or written."""

    pass


class JobData(Protocol):
    """Any value the job store can persist."""

    def to_dict(self) -> dict[str, Any]: ...

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Any: ...


T = TypeVar("T")


class JobStore(Protocol):
    """Durable store keyed by job id."""

    def find_data(self, job_id: UUID, data_type: type[T]) -> T | None: ...

    def create(self, job_id: UUID, data: JobData) -> None: ...

    def update(self, job_id: UUID, data: JobData) -> None: ...

    def get_stream(self, job_id: UUID, key: str) -> BinaryIO: ...

    def put_stream(self, job_id: UUID, key: str, stream: BinaryIO) -> None: ...


class InMemoryJobStore:
    """Job store kept in process memory.

    Data is stored as dictionaries so callers never share mutable objects
    with the store.
    """

    def __init__(self) -> None:
        self._data: dict[tuple[UUID, str], dict[str, Any]] = {}
        self._blobs: dict[tuple[UUID, str], bytes] = {}

    def find_data(self, job_id: UUID, data_type: type[T]) -> T | None:
        stored = self._data.get((job_id, data_type.__name__))
        if stored is None:
            return None
        return data_type.from_dict(stored)  # type: ignore[attr-defined]

    def create(self, job_id: UUID, data: JobData) -> None:
        key = (job_id, type(data).__name__)
        if key in self._data:
            raise JobStoreError(f"{key[1]} already exists for job {job_id}")
        self._data[key] = data.to_dict()

    def update(self, job_id: UUID, data: JobData) -> None:
        key = (job_id, type(data).__name__)
        if key not in self._data:
            raise JobStoreError(f"{key[1]} does not exist for job {job_id}")
        self._data[key] = data.to_dict()

    def get_stream(self, job_id: UUID, key: str) -> BinaryIO:
        try:
            return io.BytesIO(self._blobs[(job_id, key)])
        except KeyError:
            raise JobStoreError(f"No blob '{key}' for job {job_id}") from None

    def put_stream(self, job_id: UUID, key: str, stream: BinaryIO) -> None:
        self._blobs[(job_id, key)] = stream.read()


class LocalJobStore:
    """Job store backed by a directory tree.

    Layout::

        root/
            <job_id>/
                <TypeName>.json
                blobs/<key>
    """

    def __init__(self, root: Path) -> None:
        self.root = root

    def _job_dir(self, job_id: UUID) -> Path:
        return self.root / str(job_id)

    def _data_path(self, job_id: UUID, type_name: str) -> Path:
        return self._job_dir(job_id) / f"{type_name}.json"

    def _blob_path(self, job_id: UUID, key: str) -> Path:
        # Keys may be URLs or paths; percent-encoding keeps distinct keys distinct
        safe_key = quote(key, safe="")
        if safe_key in (".", ".."):
            safe_key = safe_key.replace(".", "%2E")
        return self._job_dir(job_id) / "blobs" / safe_key

    def find_data(self, job_id: UUID, data_type: type[T]) -> T | None:
        path = self._data_path(job_id, data_type.__name__)
        if not path.exists():
            return None
        try:
            stored = json.loads(path.read_text())
        except (OSError, ValueError) as e:
            raise JobStoreError(f"Could not read {path}: {e}") from e
        return data_type.from_dict(stored)  # type: ignore[attr-defined]

    def create(self, job_id: UUID, data: JobData) -> None:
        path = self._data_path(job_id, type(data).__name__)
        if path.exists():
            raise JobStoreError(f"{type(data).__name__} already exists for job {job_id}")
        self._write(path, data)
        logger.debug(f"Created {path}")

    def update(self, job_id: UUID, data: JobData) -> None:
        path = self._data_path(job_id, type(data).__name__)
        if not path.exists():
            raise JobStoreError(f"{type(data).__name__} does not exist for job {job_id}")
        self._write(path, data)

    def get_stream(self, job_id: UUID, key: str) -> BinaryIO:
        path = self._blob_path(job_id, key)
        try:
            return io.BytesIO(path.read_bytes())
        except FileNotFoundError:
            raise JobStoreError(f"No blob '{key}' for job {job_id}") from None

    def put_stream(self, job_id: UUID, key: str, stream: BinaryIO) -> None:
        path = self._blob_path(job_id, key)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("wb") as f:
            shutil.copyfileobj(stream, f)

    def _write(self, path: Path, data: JobData) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        # Atomic replace
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(json.dumps(data.to_dict(), indent=2))
        tmp_path.replace(path)
