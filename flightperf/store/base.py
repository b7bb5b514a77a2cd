"""
Record store interface consumed by the analytics core.

The core never owns storage: it asks a RecordStore for the flights
matching a FlightFilter, or for aggregate rows over them, and for
reference names. Adapters decide where the data lives (relational
database, in-memory fixture, ...).

Failure contract:
- Any backend failure, a query running past the configured timeout,
  or a set cancel token raises StoreUnavailable. No partial record
  list is ever returned.
- Unknown filter keys, group keys, metrics or reference kinds raise
  UnknownFilterKey before the backend is touched.
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence

from flightperf.analytics.aggregation import AggregateRow, aggregate, validate_query
from flightperf.errors import StoreUnavailable, UnknownFilterKey
from flightperf.models.records import FlightRecord, AirportRef, AirlineRef
from flightperf.store.filters import FlightFilter

logger = logging.getLogger(__name__)

REFERENCE_KINDS = ('airline', 'airport')

# Rows streamed between cancellation/deadline checks
CHECK_INTERVAL = 1000


class RecordStore(ABC):
    """
    Read-only query capability over the flight dataset.

    Subclasses implement fetch_records() and the two reference loaders.
    Reference tables are loaded once per store instance.
    """

    def __init__(self, query_timeout_seconds: Optional[float] = None):
        self.query_timeout_seconds = query_timeout_seconds
        self._reference_lock = threading.RLock()
        self._airports: Optional[Dict[str, AirportRef]] = None
        self._airlines: Optional[Dict[str, AirlineRef]] = None

    # -------------------------------------------------------------------------
    # Backend hooks
    # -------------------------------------------------------------------------

    @abstractmethod
    def fetch_records(
        self,
        flt: Optional[FlightFilter] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[FlightRecord]:
        """Return every flight matching the filter, in storage order."""

    @abstractmethod
    def _load_airports(self) -> Dict[str, AirportRef]:
        """Load the airport reference table."""

    @abstractmethod
    def _load_airlines(self) -> Dict[str, AirlineRef]:
        """Load the airline reference table."""

    # -------------------------------------------------------------------------
    # Query interface
    # -------------------------------------------------------------------------

    def query_aggregate(
        self,
        group_keys: Sequence[str],
        flt: Optional[FlightFilter] = None,
        metrics: Sequence[str] = (),
        cancel_event: Optional[threading.Event] = None,
        **options: Any,
    ) -> List[AggregateRow]:
        """
        Group the filtered flights and summarise each group.

        Options are passed through to aggregate() (delay_field,
        min_support, order_by, descending, limit, clip_negative,
        max_sequence_position).
        """
        validate_query(
            group_keys,
            metrics,
            options.get('delay_field', 'dep_delay'),
            options.get('order_by'),
        )
        records = self.fetch_records(flt, cancel_event=cancel_event)
        return aggregate(records, group_keys, metrics, **options)

    def airports(self) -> Dict[str, AirportRef]:
        with self._reference_lock:
            if self._airports is None:
                self._airports = self._load_airports()
                logger.debug(f'Loaded {len(self._airports)} airport references')
            return self._airports

    def airlines(self) -> Dict[str, AirlineRef]:
        with self._reference_lock:
            if self._airlines is None:
                self._airlines = self._load_airlines()
                logger.debug(f'Loaded {len(self._airlines)} airline references')
            return self._airlines

    def lookup_reference(self, kind: str, code: Optional[str]) -> Optional[str]:
        """
        Display name for an airline or airport code.

        Returns None for unknown codes; raises UnknownFilterKey for an
        unknown kind.
        """
        if kind not in REFERENCE_KINDS:
            raise UnknownFilterKey(kind, 'reference kind', REFERENCE_KINDS)
        if code is None:
            return None
        table = self.airlines() if kind == 'airline' else self.airports()
        ref = table.get(code)
        return ref.display_name if ref is not None else None

    # -------------------------------------------------------------------------
    # Helpers for adapters
    # -------------------------------------------------------------------------

    def _guard(
        self,
        rows: Iterable[Any],
        cancel_event: Optional[threading.Event],
        started: float,
    ) -> Iterator[Any]:
        """
        Pass rows through, aborting on cancellation or timeout.

        Checked before the first row and every CHECK_INTERVAL rows after.
        """
        self._check_abort(cancel_event, started)
        for index, row in enumerate(rows, start=1):
            if index % CHECK_INTERVAL == 0:
                self._check_abort(cancel_event, started)
            yield row
        self._check_abort(cancel_event, started)

    def _check_abort(self, cancel_event: Optional[threading.Event], started: float) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise StoreUnavailable('Query cancelled')
        if self.query_timeout_seconds is not None:
            elapsed = time.monotonic() - started
            if elapsed > self.query_timeout_seconds:
                raise StoreUnavailable(
                    f'Query exceeded timeout of {self.query_timeout_seconds}s ({elapsed:.1f}s elapsed)'
                )
