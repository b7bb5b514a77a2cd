"""
Exception types raised by the analytics core.

Only two situations are failures: the record store could not answer,
or the caller asked for something the core does not know about.
Small groups and undefined ratios are not errors; they are omitted
or reported as None.
"""


class AnalyticsError(Exception):
    """Base class for all FlightPerf errors."""


class StoreUnavailable(AnalyticsError):
    """The record store failed, timed out, or the request was cancelled."""


class UnknownDelayType(AnalyticsError, ValueError):
    """A delay type outside the supported set was requested."""

    def __init__(self, delay_type, supported=()):
        self.delay_type = delay_type
        self.supported = tuple(supported)
        message = f'Unknown delay type: {delay_type!r}'
        if self.supported:
            message += f' (expected one of: {", ".join(self.supported)})'
        super().__init__(message)


class UnknownFilterKey(AnalyticsError, ValueError):
    """A filter, grouping key, metric or reference kind was not recognised."""

    def __init__(self, key, kind: str = 'filter key', supported=()):
        self.key = key
        self.kind = kind
        self.supported = tuple(supported)
        message = f'Unknown {kind}: {key!r}'
        if self.supported:
            message += f' (expected one of: {", ".join(sorted(self.supported))})'
        super().__init__(message)
