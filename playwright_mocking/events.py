import time
import logging
from collections import Counter
from dataclasses import dataclass
from beartype import beartype
from beartype.typing import Optional, List, Dict, Callable
from .exceptions import NetworkError
from .tools import UrlPattern, url_matches
from . import config as CFG


EVENTS = ("request", "response", "requestfinished", "requestfailed")


@dataclass
class RecordedExchange:
    """Один запрос страницы и то, чем он закончился"""

    method: str
    url: str
    resource_type: str
    started: float
    status: Optional[int] = None
    failure: Optional[str] = None
    finished: Optional[float] = None

    @property
    def duration(self) -> Optional[float]:
        if self.finished is None:
            return None
        return self.finished - self.started

    def to_network_error(self) -> Optional[NetworkError]:
        if self.failure is None:
            return None
        return NetworkError(
            name=CFG.ERROR_REQUEST_FAILED,
            message=self.failure,
            details={"url": self.url, "method": self.method, "resource_type": self.resource_type},
            timestamp=time.strftime("%Y-%m-%dT%H:%M:%S", time.localtime(self.finished or self.started)),
            duration=self.duration or 0.0,
        )


class NetworkRecorder:
    """
    Подписка на сетевые события страницы: request, response, requestfinished, requestfailed.

    Пример:
        async with NetworkRecorder(page, "**/api/**") as recorder:
            await page.goto(url)
        print(recorder.summary())
    """

    @beartype
    def __init__(self, page, pattern: UrlPattern = None):
        self._page = page
        self.pattern = pattern
        self._exchanges: Dict[object, RecordedExchange] = {}
        self._callbacks: Dict[str, List[Callable]] = {event: [] for event in EVENTS}
        self._attached = False

        self._logger = logging.getLogger(self.__class__.__name__)
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('[%(asctime)s] %(levelname)s %(name)s: %(message)s'))
        if not self._logger.hasHandlers():
            self._logger.addHandler(handler)

        self._listeners = {
            "request": self._on_request,
            "response": self._on_response,
            "requestfinished": self._on_finished,
            "requestfailed": self._on_failed,
        }

    async def __aenter__(self) -> "NetworkRecorder":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.stop()

    @property
    def attached(self) -> bool:
        return self._attached

    def start(self) -> None:
        if self._attached:
            return
        for event, listener in self._listeners.items():
            self._page.on(event, listener)
        self._attached = True
        self._logger.debug(CFG.LOG_RECORDER_STARTED)

    def stop(self) -> None:
        if not self._attached:
            return
        for event, listener in self._listeners.items():
            self._page.remove_listener(event, listener)
        self._attached = False
        self._logger.debug(CFG.LOG_RECORDER_STOPPED)

    @beartype
    def on(self, event: str, callback: Callable) -> None:
        """Дополнительный пользовательский колбэк на событие (вызывается только для запросов под pattern)"""
        if event not in self._callbacks:
            raise ValueError(f"Unknown network event: {event}. Expected one of {EVENTS}")
        self._callbacks[event].append(callback)

    def clear(self) -> None:
        self._exchanges.clear()

    @property
    def exchanges(self) -> List[RecordedExchange]:
        return list(self._exchanges.values())

    @property
    def requests(self) -> List[str]:
        return [f"{e.method} {e.url}" for e in self._exchanges.values()]

    @property
    def responses(self) -> List[RecordedExchange]:
        return [e for e in self._exchanges.values() if e.status is not None]

    @property
    def failures(self) -> List[NetworkError]:
        return [e.to_network_error() for e in self._exchanges.values() if e.failure is not None]

    def summary(self) -> Dict[str, int]:
        """Количество обменов по статусу; 'pending' - без ответа, 'failed' - упавшие"""
        counter = Counter()
        for exchange in self._exchanges.values():
            if exchange.failure is not None:
                counter["failed"] += 1
            elif exchange.status is None:
                counter["pending"] += 1
            else:
                counter[str(exchange.status)] += 1
        return dict(counter)

    def _matches(self, url: str) -> bool:
        return url_matches(self.pattern, url)

    def _notify(self, event: str, payload) -> None:
        for callback in self._callbacks[event]:
            try:
                callback(payload)
            except Exception as e:
                self._logger.warning(f"{CFG.LOG_CALLBACK_FAILED} ({event}): {e}")

    def _on_request(self, request) -> None:
        if not self._matches(request.url):
            return
        self._exchanges[request] = RecordedExchange(
            method=request.method,
            url=request.url,
            resource_type=request.resource_type,
            started=time.time(),
        )
        self._logger.debug(f">> {CFG.LOG_EVENT_REQUEST}: {request.method} {request.url}")
        self._notify("request", request)

    def _on_response(self, response) -> None:
        exchange = self._exchanges.get(response.request)
        if exchange is None:
            return
        exchange.status = response.status
        self._logger.debug(f"<< {CFG.LOG_EVENT_RESPONSE}: {response.status} {response.url}")
        self._notify("response", response)

    def _on_finished(self, request) -> None:
        exchange = self._exchanges.get(request)
        if exchange is None:
            return
        exchange.finished = time.time()
        self._logger.debug(f"{CFG.LOG_EVENT_FINISHED}: {request.url}")
        self._notify("requestfinished", request)

    def _on_failed(self, request) -> None:
        exchange = self._exchanges.get(request)
        if exchange is None:
            return
        exchange.finished = time.time()
        exchange.failure = request.failure or CFG.ERROR_MESSAGE_UNKNOWN
        self._logger.debug(f"{CFG.LOG_EVENT_FAILED}: {request.url} ({exchange.failure})")
        self._notify("requestfailed", request)
