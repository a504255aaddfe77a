"""Base classes for API-backed entity controllers."""

import datetime as dt
from abc import ABC, abstractmethod
from typing import Any

import structlog

from alphacloud.api.connector import Connector
from alphacloud.api.errors import ErrorCode, RequestStatus
from alphacloud.api.request import ApiRequest, EndPoint
from alphacloud.cache.memory import QueryCache
from alphacloud.utils.signals import Signal

logger = structlog.get_logger(__name__)


class EntityController(ABC):
    """Owns one API-backed record or collection and its request lifecycle.

    ``status`` moves from ``NO_REQUEST`` to ``LOADING`` on ``reload()`` and
    ends in either ``FINISHED`` or ``ERROR``. Only one request is in flight at
    a time; a new ``reload()`` aborts the previous one and any late completion
    of it is ignored.

    Every property change is announced through
    ``changed(name, value)``, only when the value actually changed.
    """

    endpoint: EndPoint

    def __init__(self, connector: Connector | None = None) -> None:
        self.changed = Signal("changed")

        self._connector = connector
        self._status = RequestStatus.NO_REQUEST
        self._error = ErrorCode.NO_ERROR
        self._error_string = ""

        self._request: ApiRequest | None = None
        self._generation = 0

    def __repr__(self) -> str:
        return f"<{type(self).__name__} status={self._status.name}>"

    @property
    def connector(self) -> Connector | None:
        return self._connector

    @connector.setter
    def connector(self, connector: Connector | None) -> None:
        if connector is self._connector:
            return

        self._connector = connector
        self._clear_cache()
        self.reset()
        self.changed.emit("connector", connector)

    @property
    def status(self) -> RequestStatus:
        return self._status

    @property
    def error(self) -> ErrorCode:
        """Error of the last request, ``NO_ERROR`` after a successful one."""
        return self._error

    @property
    def error_string(self) -> str:
        return self._error_string

    @property
    def loading(self) -> bool:
        return self._status is RequestStatus.LOADING

    def _update(self, name: str, value: Any) -> bool:
        """Set ``_<name>`` and emit ``changed`` if the value differs. Returns whether it did."""
        attr = f"_{name}"
        if getattr(self, attr) == value:
            return False
        setattr(self, attr, value)
        self.changed.emit(name, value)
        return True

    def _set_status(self, status: RequestStatus) -> None:
        self._update("status", status)

    def _set_error(self, error: ErrorCode, error_string: str) -> None:
        """Set both error properties."""
        self._update("error", error)
        self._update("error_string", error_string)

    def _check_keys(self) -> bool:
        """Check the key fields needed to build a request."""
        return True

    @abstractmethod
    def _create_request(self, connector: Connector) -> ApiRequest:
        """Create the request for the current key fields."""

    @abstractmethod
    def _apply(self, payload: Any) -> None:
        """Materialize an API payload, None clears all data."""

    def _cached_payload(self) -> Any:
        """Get a cached payload for the current keys, None on a miss."""
        return None

    def _store(self, request: ApiRequest) -> None:
        """Keep the result of a finished request, if it should be cached."""
        pass

    def _clear_cache(self) -> None:
        """Drop every cached result."""
        pass

    def _discard_cache_entry(self) -> None:
        """Drop the cached result for the current keys."""
        pass

    def reload(self) -> bool:
        """Reload the data.

        Returns:
            True if the data was taken from the cache or a request was sent.
            False if the controller lacks a connector or key fields, or if
            the request could not be sent. ``status`` is left untouched then.
        """
        name = type(self).__name__

        if self._connector is None:
            logger.warning("Cannot reload without a connector", controller=name)
            return False

        if not self._check_keys():
            return False

        self._abort_request()

        payload = self._cached_payload()
        if payload is not None:
            logger.debug("Using cached result", controller=name)
            self._apply(payload)
            self._set_error(ErrorCode.NO_ERROR, "")
            self._set_status(RequestStatus.FINISHED)
            return True

        request = self._create_request(self._connector)
        generation = self._generation

        request.result.connect(lambda: self._on_result(request, generation))
        request.error_occurred.connect(lambda: self._on_error(request, generation))
        request.finished.connect(lambda: self._on_finished(request))

        if not request.send():
            return False

        self._request = request
        self._set_status(RequestStatus.LOADING)
        return True

    def _on_result(self, request: ApiRequest, generation: int) -> None:
        """Apply the data of a successful request unless it was superseded."""
        if generation != self._generation:
            logger.debug("Ignoring stale result", controller=type(self).__name__)
            return

        self._apply(request.data)
        self._set_error(ErrorCode.NO_ERROR, "")
        self._set_status(RequestStatus.FINISHED)
        self._store(request)

    def _on_error(self, request: ApiRequest, generation: int) -> None:
        """Forward the error of a failed request unless it was superseded."""
        if generation != self._generation:
            logger.debug("Ignoring stale error", controller=type(self).__name__)
            return

        self._set_error(request.error, request.error_string)
        self._set_status(RequestStatus.ERROR)

    def _on_finished(self, request: ApiRequest) -> None:
        """Forget the request once it completed, if it is still the current one."""
        if self._request is request:
            self._request = None

    def _abort_request(self) -> None:
        """Abort the request in flight and invalidate callbacks of earlier requests."""
        self._generation += 1
        if self._request is not None:
            logger.debug("Cancelling request in flight", controller=type(self).__name__)
            self._request.abort()
            self._request = None

    def reset(self) -> None:
        """Abort any request and clear all data and the current cache entry."""
        self._reset(drop_cache_entry=True)

    def _reset(self, drop_cache_entry: bool) -> None:
        """Abort any request and clear all data.

        Args:
            drop_cache_entry: Also drop the cached result for the current keys.
        """
        self._abort_request()
        if drop_cache_entry:
            self._discard_cache_entry()
        self._apply(None)
        self._set_error(ErrorCode.NO_ERROR, "")
        self._set_status(RequestStatus.NO_REQUEST)

    async def wait(self) -> RequestStatus:
        """Wait for the request in flight, if any, to complete.

        Follows superseding requests issued while waiting.

        Returns:
            The status afterwards.
        """
        while self._request is not None:
            request = self._request
            await request.wait()
            if self._request is request:
                self._request = None
        return self._status


class SystemController(EntityController):
    """Controller keyed by a storage system serial number."""

    def __init__(self, connector: Connector | None = None, serial_number: str = "") -> None:
        super().__init__(connector)
        self._serial_number = serial_number

    @property
    def serial_number(self) -> str:
        return self._serial_number

    @serial_number.setter
    def serial_number(self, serial_number: str) -> None:
        if serial_number == self._serial_number:
            return

        self._serial_number = serial_number
        self._clear_cache()
        self.reset()
        self.changed.emit("serial_number", serial_number)

    def _check_keys(self) -> bool:
        if not self._serial_number:
            logger.warning("Cannot reload without a serial number", controller=type(self).__name__)
            return False
        return True

    def _create_request(self, connector: Connector) -> ApiRequest:
        return ApiRequest(connector, self.endpoint, sys_sn=self._serial_number)


class DateQueryController(SystemController):
    """Controller keyed by serial number and date, with a per-date cache.

    Results for past dates are kept in memory so that switching back and
    forth between days does not hit the API again.
    """

    def __init__(
        self,
        connector: Connector | None = None,
        serial_number: str = "",
        query_date: dt.date | None = None,
    ) -> None:
        super().__init__(connector, serial_number)
        self._date: dt.date | None = query_date if query_date is not None else dt.date.today()
        self._cached = True
        self._cache = QueryCache(type(self).__name__)

    @property
    def date(self) -> dt.date | None:
        return self._date

    @date.setter
    def date(self, query_date: dt.date | None) -> None:
        if query_date == self._date:
            return

        self._date = query_date
        self._reset(drop_cache_entry=False)
        self.changed.emit("date", query_date)

    def reset_date(self) -> None:
        """Set the date to today."""
        self.date = dt.date.today()

    @property
    def cached(self) -> bool:
        """Whether results for past dates are cached."""
        return self._cached

    @cached.setter
    def cached(self, cached: bool) -> None:
        if cached == self._cached:
            return

        self._cached = cached
        if not cached:
            self._clear_cache()
        self.changed.emit("cached", cached)

    @property
    def cache(self) -> QueryCache:
        return self._cache

    def force_reload(self) -> bool:
        """Clear the cache, then reload."""
        self._clear_cache()
        return self.reload()

    def _check_keys(self) -> bool:
        if not super()._check_keys():
            return False
        if self._date is None:
            logger.warning("Cannot reload without a valid date", controller=type(self).__name__)
            return False
        return True

    def _create_request(self, connector: Connector) -> ApiRequest:
        return ApiRequest(
            connector,
            self.endpoint,
            sys_sn=self._serial_number,
            query_date=self._date,
        )

    def _cached_payload(self) -> Any:
        if not self._cached or self._date is None:
            return None
        return self._cache.lookup(self._date)

    def _store(self, request: ApiRequest) -> None:
        query_date = request.query_date
        if not self._cached or query_date is None or not self._cacheable(request.data):
            return
        self._cache.store(query_date, request.data)

    def _cacheable(self, payload: Any) -> bool:
        """Whether a result payload may be cached."""
        return bool(payload)

    def _clear_cache(self) -> None:
        self._cache.clear()

    def _discard_cache_entry(self) -> None:
        if self._date is not None:
            self._cache.discard(self._date)
