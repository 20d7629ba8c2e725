"""
app/services/dataset_store.py

Holds the current sales and funnel datasets.

Each dataset is replaced wholesale when a new file of its kind finishes
parsing. Overlapping uploads are ordered by a per-kind generation counter:
a load that started before a newer one for the same kind is discarded when
it completes, so the most recently *started* upload always wins.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from app.domain.dataset import Dataset, DatasetKind
from app.services.csv_ingestion_service import CSVNormalizer, decode_upload, get_csv_normalizer

logger = logging.getLogger(__name__)


class DatasetLoadError(RuntimeError):
    """
    Raised when an upload fails unexpectedly. The previous dataset is kept.
    """


@dataclass(frozen=True)
class LoadToken:
    kind: DatasetKind
    generation: int


class DatasetStore:
    """
    Owns dataset lifecycle for one dashboard session.
    """

    def __init__(self, *, normalizer: CSVNormalizer | None = None) -> None:
        self._normalizer = normalizer or get_csv_normalizer()
        self._lock = threading.Lock()
        self._datasets: dict[DatasetKind, Dataset] = {
            kind: Dataset.empty(kind) for kind in DatasetKind
        }
        self._generations: dict[DatasetKind, int] = {kind: 0 for kind in DatasetKind}
        self._loaded: dict[DatasetKind, bool] = {kind: False for kind in DatasetKind}
        self._upload_ids: dict[DatasetKind, str] = {}

    def get(self, kind: DatasetKind) -> Dataset:
        with self._lock:
            return self._datasets[kind]

    def loaded(self, kind: DatasetKind) -> bool:
        with self._lock:
            return self._loaded[kind]

    def is_new_upload(self, kind: DatasetKind, upload_id: str) -> bool:
        """
        Record *upload_id* as the latest attempted upload for *kind*.

        Returns ``False`` when that upload was already attempted, whether or
        not it loaded, so a failing file is not parsed again on every rerun.
        """

        with self._lock:
            if self._upload_ids.get(kind) == upload_id:
                return False
            self._upload_ids[kind] = upload_id
            return True

    def begin_load(self, kind: DatasetKind) -> LoadToken:
        """
        Reserve a generation for a new upload of *kind*.
        """

        with self._lock:
            self._generations[kind] += 1
            return LoadToken(kind=kind, generation=self._generations[kind])

    def commit(self, token: LoadToken, dataset: Dataset) -> bool:
        """
        Install *dataset* if *token* is still the newest load for its kind.

        Returns ``False`` when a newer upload has started in the meantime;
        the stale dataset is dropped.
        """

        if dataset.kind is not token.kind:
            raise ValueError(
                f"Dataset kind {dataset.kind.value!r} does not match load token {token.kind.value!r}."
            )
        with self._lock:
            latest = self._generations[token.kind]
            if token.generation != latest:
                logger.info(
                    "Discarding stale %s dataset generation=%d latest=%d",
                    token.kind.value,
                    token.generation,
                    latest,
                )
                return False
            self._datasets[token.kind] = dataset
            self._loaded[token.kind] = True
        logger.info(
            "Loaded %s dataset rows=%d skipped=%d date_failures=%d",
            token.kind.value,
            len(dataset),
            dataset.diagnostics.rows_skipped,
            dataset.diagnostics.date_failures,
        )
        return True

    def ingest(
        self,
        kind: DatasetKind,
        raw_text: str,
        *,
        source_name: str | None = None,
    ) -> Dataset:
        """
        Parse *raw_text* and install it as the current dataset of *kind*.

        Returns the dataset that is current after the call, which is the
        newly parsed one unless a newer upload superseded it.
        """

        token = self.begin_load(kind)
        try:
            dataset = self._normalizer.load_dataset(raw_text, kind, source_name=source_name)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected failure while parsing %s upload %r", kind.value, source_name)
            raise DatasetLoadError(f"Could not load {kind.value} data.") from exc
        self.commit(token, dataset)
        return self.get(kind)

    def ingest_bytes(
        self,
        kind: DatasetKind,
        data: bytes,
        *,
        source_name: str | None = None,
    ) -> Dataset:
        return self.ingest(kind, decode_upload(data), source_name=source_name)

    def replace(self, dataset: Dataset) -> None:
        """
        Install an already-built dataset, e.g. generated sample data.
        """

        self.commit(self.begin_load(dataset.kind), dataset)

    def clear(self) -> None:
        with self._lock:
            self._upload_ids.clear()
            for kind in DatasetKind:
                self._generations[kind] += 1
                self._datasets[kind] = Dataset.empty(kind)
                self._loaded[kind] = False
