"""
Document-retrieval collaborators the reporting engine reads from.

The engine only ever reads. A source hands back raw mappings (one per document)
and the normalizer turns them into models. Two failure classes matter to callers:

- UnsupportedQueryError: the backend cannot serve a compound filter because the
  index it needs is not deployed. Callers may retry with a simpler filter.
- SourceError: anything else (network, auth, unavailable). Not recoverable here.
"""

import json
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping, Optional

import requests
from pydantic import Field

from . import settings
from .normalizer import parse_timestamp, resolve_field
from .schemas import Record

RawRecord = Mapping[str, Any]


class SourceError(Exception):
    """Hard failure talking to the document store."""


class UnsupportedQueryError(SourceError):
    """The store rejected a query because a required (composite) index is missing."""


class MovementFilter(Record):
    """Movements with timestamp >= min_timestamp, optionally restricted to one type."""

    min_timestamp: datetime = Field(..., alias="minTimestamp")
    type: Optional[str] = None

    @property
    def is_compound(self) -> bool:
        return self.type is not None


class DocumentSource(ABC):
    """Read-only access to the items, stock movements and settings collections."""

    @abstractmethod
    def fetch_all_items(self) -> list[RawRecord]:
        pass

    @abstractmethod
    def fetch_movements(self, movement_filter: MovementFilter) -> list[RawRecord]:
        """
        Returns raw movement documents matching the filter.
        May raise UnsupportedQueryError for a compound filter.
        """
        pass

    @abstractmethod
    def fetch_thresholds(self) -> RawRecord | None:
        """Returns the thresholds settings document, or None when it does not exist."""
        pass


def matches_filter(raw: RawRecord, movement_filter: MovementFilter) -> bool:
    """Server-side filter semantics, for sources that evaluate filters themselves."""
    timestamp = parse_timestamp(resolve_field(raw, "timestamp"))
    if timestamp is None or timestamp < movement_filter.min_timestamp:
        return False
    if movement_filter.type is not None and raw.get("type") != movement_filter.type:
        return False
    return True


class JsonFileSource(DocumentSource):
    """
    Reads JSON exports of the collections from a directory:
    items.json, stock_movements.json and (optional) thresholds.json.
    Each collection file is either a list of documents or {"documents": [...]}.
    """

    ITEMS_FILENAME = "items.json"
    MOVEMENTS_FILENAME = "stock_movements.json"
    THRESHOLDS_FILENAME = "thresholds.json"

    def __init__(self, input_dir: Path | str = None):
        self.input_dir = Path(input_dir or settings.INPUT_DIR)

    def _read(self, filename: str) -> Any:
        path = self.input_dir / filename
        try:
            with open(path, encoding="utf-8-sig") as f:
                return json.load(f)
        except FileNotFoundError as e:
            raise SourceError(f"Export not found: {path}") from e
        except (OSError, json.JSONDecodeError) as e:
            raise SourceError(f"Could not read {path.name}. Reason: {e}") from e

    def _read_collection(self, filename: str) -> list[RawRecord]:
        data = self._read(filename)
        if isinstance(data, Mapping):
            data = data.get("documents", [])
        if not isinstance(data, list):
            raise SourceError(f"{filename} does not contain a list of documents")
        return [doc for doc in data if isinstance(doc, Mapping)]

    def fetch_all_items(self) -> list[RawRecord]:
        return self._read_collection(self.ITEMS_FILENAME)

    def fetch_movements(self, movement_filter: MovementFilter) -> list[RawRecord]:
        movements = self._read_collection(self.MOVEMENTS_FILENAME)
        return [m for m in movements if matches_filter(m, movement_filter)]

    def fetch_thresholds(self) -> RawRecord | None:
        if not (self.input_dir / self.THRESHOLDS_FILENAME).exists():
            return None
        data = self._read(self.THRESHOLDS_FILENAME)
        return data if isinstance(data, Mapping) else None


class RestDocumentSource(DocumentSource):
    """
    HTTP gateway in front of the document store.

    GET {base}/{collection}                      -> {"documents": [...]} or [...]
    GET {base}/{collection}?type=OUT&since=ISO   -> filtered movements
    GET {base}/{document path}                   -> single document, 404 if absent
    """

    INDEX_ERROR_MARKERS = ("failed_precondition", "requires an index", "index")

    def __init__(
        self,
        base_url: str = None,
        token: str = None,
        timeout: float = None,
        session: requests.Session = None,
    ):
        base_url = base_url or settings.DOCUMENT_STORE_URL
        if not base_url:
            raise ValueError("A document store URL is required (DOCUMENT_STORE_URL).")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout or settings.REQUEST_TIMEOUT
        self.session = session or requests.Session()
        token = token or settings.DOCUMENT_STORE_TOKEN
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def _get(self, path: str, params: dict | None = None) -> requests.Response:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            return self.session.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise SourceError(f"Request to {url} failed: {e}") from e

    def _is_missing_index(self, response: requests.Response) -> bool:
        if response.status_code not in (400, 412):
            return False
        body = response.text.lower()
        return any(marker in body for marker in self.INDEX_ERROR_MARKERS)

    def _documents(self, response: requests.Response) -> list[RawRecord]:
        try:
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.HTTPError as e:
            raise SourceError(f"Document store returned an error: {e}") from e
        except ValueError as e:
            raise SourceError(f"Document store returned invalid JSON: {e}") from e

        if isinstance(data, Mapping):
            data = data.get("documents", [])
        if not isinstance(data, list):
            raise SourceError("Document store response does not contain a list of documents")
        return [doc for doc in data if isinstance(doc, Mapping)]

    def fetch_all_items(self) -> list[RawRecord]:
        return self._documents(self._get(settings.ITEMS_COLLECTION))

    def fetch_movements(self, movement_filter: MovementFilter) -> list[RawRecord]:
        params = {"since": movement_filter.min_timestamp.isoformat()}
        if movement_filter.type is not None:
            params["type"] = movement_filter.type

        response = self._get(settings.MOVEMENTS_COLLECTION, params=params)
        if movement_filter.is_compound and self._is_missing_index(response):
            raise UnsupportedQueryError(
                f"Compound movement query not supported: {response.text[:200]}"
            )
        return self._documents(response)

    def fetch_thresholds(self) -> RawRecord | None:
        response = self._get(settings.THRESHOLDS_DOCUMENT)
        if response.status_code == 404:
            return None
        try:
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.HTTPError as e:
            raise SourceError(f"Could not read thresholds: {e}") from e
        except ValueError as e:
            raise SourceError(f"Thresholds document is not valid JSON: {e}") from e
        return data if isinstance(data, Mapping) else None
