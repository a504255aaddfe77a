"""Single-shot signed request against the AlphaCloud open API."""

import asyncio
import json
import posixpath
from datetime import date
from enum import Enum, StrEnum
from typing import Any

import httpx
import structlog

from alphacloud.api.connector import Connector
from alphacloud.api.errors import (
    ErrorCode,
    error_text,
    http_status_error_code,
    transport_error_code,
)
from alphacloud.api.signer import current_timestamp, sign
from alphacloud.utils.signals import Signal

logger = structlog.get_logger(__name__)


class EndPoint(StrEnum):
    """Known API endpoints."""

    ESS_LIST = "getEssList"
    LAST_POWER_DATA = "getLastPowerData"
    ONE_DATE_ENERGY_BY_SN = "getOneDateEnergyBySn"
    ONE_DAY_POWER_BY_SN = "getOneDayPowerBySn"


class RequestState(Enum):
    """Lifecycle of an ApiRequest."""

    IDLE = "idle"
    SENT = "sent"
    DONE = "done"


def _endpoint_path(base_path: str, endpoint: str) -> str:
    """Join the base URL path and an endpoint name into a normalised absolute path."""
    path = posixpath.normpath(f"{base_path}/{endpoint}")
    # normpath keeps a leading double slash
    return "/" + path.lstrip("/")


class ApiRequest:
    """One request to the API.

    Call ``send()`` to schedule it on the running event loop. Once the
    response arrived, exactly one of ``result`` or ``error_occurred`` is
    emitted, followed by ``finished``. ``abort()`` cancels the request and
    suppresses all further signals.

    A request can only be sent once.
    """

    def __init__(
        self,
        connector: Connector,
        endpoint: EndPoint | str,
        sys_sn: str = "",
        query_date: date | None = None,
        query: dict[str, str] | None = None,
    ) -> None:
        """Initialize the request.

        Args:
            connector: Connector providing configuration and transport.
            endpoint: API endpoint name.
            sys_sn: System serial number, sent as ``sysSn`` when non-empty.
            query_date: Date, sent as ``queryDate`` when set.
            query: Additional query parameters.
        """
        self.result = Signal("result")
        self.error_occurred = Signal("error_occurred")
        self.finished = Signal("finished")

        self._connector = connector
        self._endpoint = endpoint
        self.sys_sn = sys_sn
        self.query_date = query_date
        self.query = dict(query or {})

        self._state = RequestState.IDLE
        self._error = ErrorCode.NO_ERROR
        self._error_string = ""
        self._data: Any = None

        self._task: asyncio.Task[None] | None = None
        self._aborted = False
        self._done = asyncio.Event()

    def __repr__(self) -> str:
        return f"<ApiRequest {self.endpoint_name} state={self._state.value}>"

    @property
    def connector(self) -> Connector:
        return self._connector

    @property
    def endpoint(self) -> EndPoint | str:
        return self._endpoint

    @property
    def endpoint_name(self) -> str:
        if isinstance(self._endpoint, EndPoint):
            return self._endpoint.value
        return self._endpoint

    @property
    def state(self) -> RequestState:
        return self._state

    @property
    def error(self) -> ErrorCode:
        return self._error

    @property
    def error_string(self) -> str:
        return self._error_string

    @property
    def data(self) -> Any:
        """The envelope's ``data`` field after a successful request."""
        return self._data

    @property
    def aborted(self) -> bool:
        return self._aborted

    def build_request(self, timestamp: int | None = None) -> httpx.Request:
        """Build the signed HTTP request.

        Args:
            timestamp: Unix timestamp to sign with, defaults to now.

        Returns:
            The request, ready to be sent with the connector's transport.
        """
        configuration = self._connector.configuration
        transport = self._connector.transport
        if configuration is None or transport is None:
            raise RuntimeError("Connector has no configuration or transport")

        if timestamp is None:
            timestamp = current_timestamp()
        timestamp_str = str(timestamp)

        base_url = httpx.URL(configuration.api_url)
        url = base_url.copy_with(path=_endpoint_path(base_url.path, self.endpoint_name))

        params: dict[str, str] = dict(self.query)
        if self.sys_sn:
            params["sysSn"] = self.sys_sn
        if self.query_date is not None:
            params["queryDate"] = self.query_date.strftime("%Y-%m-%d")

        headers = {
            "appId": configuration.app_id,
            "timeStamp": timestamp_str,
            "sign": sign(configuration.app_id, configuration.app_secret, timestamp),
            "Content-Type": "application/json",
            "Content-Length": "0",
        }

        timeout = configuration.request_timeout / 1000 if configuration.request_timeout else None

        return transport.build_request(
            "GET",
            url,
            params=params or None,
            headers=headers,
            timeout=timeout,
        )

    def send(self) -> bool:
        """Send the request.

        Returns:
            True if the request was scheduled. False if the connector lacks a
            transport or a valid configuration, or if no event loop is running.
        """
        if self._state is not RequestState.IDLE:
            logger.error("Cannot send a request twice", endpoint=self.endpoint_name)
            return False

        if self._connector.transport is None:
            logger.error("Cannot send request without a transport", endpoint=self.endpoint_name)
            return self._fail_send()

        configuration = self._connector.configuration
        if configuration is None:
            logger.error(
                "Cannot send request on a connector with no configuration",
                endpoint=self.endpoint_name,
            )
            return self._fail_send()

        if not configuration.valid:
            logger.error(
                "Cannot send request on a connector with an invalid configuration",
                endpoint=self.endpoint_name,
            )
            return self._fail_send()

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.error("Cannot send request without a running event loop", endpoint=self.endpoint_name)
            return self._fail_send()

        request = self.build_request()
        deadline = configuration.request_timeout / 1000 if configuration.request_timeout else None

        logger.debug("Sending API request", url=str(request.url))

        self._error = ErrorCode.NO_ERROR
        self._error_string = ""
        self._data = None

        self._state = RequestState.SENT
        self._task = loop.create_task(self._run(self._connector.transport, request, deadline))
        return True

    def _fail_send(self) -> bool:
        """Mark the request as done without sending it."""
        self._state = RequestState.DONE
        self._done.set()
        return False

    def abort(self) -> None:
        """Cancel the request. No signals are emitted afterwards."""
        if self._aborted:
            return

        self._aborted = True
        if self._task is not None and not self._task.done():
            logger.debug("Aborting API request", endpoint=self.endpoint_name)
            self._task.cancel()

        self._state = RequestState.DONE
        self._done.set()

    async def wait(self) -> bool:
        """Wait until the request is done or aborted.

        Returns:
            True if the request completed successfully.
        """
        if self._task is None:
            return False
        await self._done.wait()
        return not self._aborted and self._error == ErrorCode.NO_ERROR

    async def _run(
        self,
        transport: httpx.AsyncClient,
        request: httpx.Request,
        deadline: float | None,
    ) -> None:
        """Send the request and emit its outcome. Always marks the request done."""
        try:
            try:
                response = await asyncio.wait_for(transport.send(request), deadline)
            except (httpx.HTTPError, httpx.InvalidURL, TimeoutError, OSError) as e:
                code = transport_error_code(e)
                self._error = code
                self._error_string = str(e) or error_text(code)
                logger.warning(
                    "API request failed with transport error",
                    url=str(request.url),
                    error=self._error.name,
                    error_string=self._error_string,
                )
            else:
                if response.is_error:
                    self._error = http_status_error_code(response.status_code)
                    self._error_string = f"HTTP {response.status_code} {response.reason_phrase}".strip()
                    logger.warning(
                        "API request failed with HTTP error",
                        url=str(request.url),
                        status_code=response.status_code,
                        response=response.text[:200],
                    )
                else:
                    self._process_response(response.content, str(request.url))

            self._state = RequestState.DONE
            self._emit_outcome()
        finally:
            self._state = RequestState.DONE
            self._done.set()

    def _process_response(self, content: bytes, url: str) -> None:
        """Classify a response body and set error, error string and data."""
        code: Any = None

        try:
            document = json.loads(content)
        except ValueError as e:
            self._error = ErrorCode.JSON_PARSE_ERROR
            self._error_string = error_text(self._error, str(e))
        else:
            if not isinstance(document, dict):
                self._error = ErrorCode.UNEXPECTED_JSON_DATA_ERROR
                self._error_string = error_text(self._error, document)
            elif not document:
                self._error = ErrorCode.EMPTY_JSON_OBJECT_ERROR
                self._error_string = error_text(self._error)
            else:
                code = document.get("code")
                msg = document.get("msg")
                msg = msg if isinstance(msg, str) else None

                if not isinstance(code, int) or isinstance(code, bool):
                    self._error = ErrorCode.UNKNOWN_ERROR
                    self._error_string = error_text(self._error, msg)
                elif code != 200:
                    error = ErrorCode(code)
                    # A code of 0 must not read as success.
                    self._error = error if error != ErrorCode.NO_ERROR else ErrorCode.UNKNOWN_ERROR
                    self._error_string = error_text(self._error, msg)
                else:
                    self._data = document.get("data")

        if self._error != ErrorCode.NO_ERROR:
            logger.warning(
                "API request failed with API error",
                url=url,
                error=self._error.name,
                code=code,
                error_string=self._error_string,
            )
        else:
            logger.debug("API request succeeded", url=url)

    def _emit_outcome(self) -> None:
        """Emit ``result`` or ``error_occurred``, then ``finished``.

        A failing listener is logged and does not prevent ``finished``.
        Nothing is emitted once the request was aborted, also when a
        listener aborts it.
        """
        if self._aborted:
            return

        try:
            if self._error == ErrorCode.NO_ERROR:
                self.result.emit()
            else:
                self.error_occurred.emit()
        except Exception:
            logger.exception("API request listener failed", endpoint=self.endpoint_name)

        if self._aborted:
            return
        self.finished.emit()
