import asyncio
import logging
from dataclasses import dataclass, field
from beartype import beartype
from beartype.typing import Union, Optional, Dict, List, Callable, Iterable
from .content_loader import encode_body
from .exceptions import MockConfigurationError
from .models import Request, Response, HttpMethod
from .tools import UrlPattern, call_maybe_async, describe_pattern
from . import config as CFG


@beartype
@dataclass(frozen=False)
class MockResponse:
    """Синтетический ответ, который отдаётся вместо похода в сеть"""

    status: int = 200
    json: Optional[Union[dict, list]] = None
    body: Optional[Union[str, bytes]] = None
    headers: Optional[Dict[str, str]] = None
    content_type: Optional[str] = None
    delay: float = 0.0

    def __post_init__(self):
        if self.json is not None and self.body is not None:
            raise MockConfigurationError(CFG.ERROR_MOCK_BODY_CONFLICT)
        if not 100 <= self.status <= 599:
            raise MockConfigurationError(f"{CFG.ERROR_MOCK_STATUS}: {self.status}")
        if self.delay < 0:
            raise MockConfigurationError(CFG.ERROR_MOCK_DELAY)
        if self.headers is None:
            self.headers = {}

    def payload(self) -> tuple:
        return encode_body(self.json if self.json is not None else self.body)

    def to_fulfill_kwargs(self) -> dict:
        """Аргументы для route.fulfill()"""
        content, default_type = self.payload()
        kwargs = {"status": self.status, "headers": dict(self.headers), "body": content}
        content_type = self.content_type or default_type
        if content_type and not any(k.lower() == 'content-type' for k in self.headers):
            kwargs["content_type"] = content_type
        return kwargs

    def to_response(self, url: Optional[str] = None, request_headers: Optional[dict] = None) -> Response:
        content, default_type = self.payload()
        headers = dict(self.headers)
        content_type = self.content_type or default_type
        if content_type and not any(k.lower() == 'content-type' for k in headers):
            headers['content-type'] = content_type
        return Response(
            status=self.status,
            request_headers=request_headers or {},
            response_headers=headers,
            content=content,
            duration=self.delay,
            url=url,
        )


@dataclass
class _RouteEntry:
    kind: str
    pattern: UrlPattern
    handler: Callable
    calls: List[Request] = field(default_factory=list)
    active: bool = True


class ApiMocker:
    """
    Регистр моков поверх page.route().

    Последний зарегистрированный маршрут проверяется первым (так работает Playwright),
    запросы с другим методом уходят дальше через route.fallback().
    """

    def __init__(self, page):
        self._page = page
        self._entries: List[_RouteEntry] = []

        self._logger = logging.getLogger(self.__class__.__name__)
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('[%(asctime)s] %(levelname)s %(name)s: %(message)s'))
        if not self._logger.hasHandlers():
            self._logger.addHandler(handler)

    async def __aenter__(self) -> "ApiMocker":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.unmock_all()

    @property
    def patterns(self) -> List[str]:
        return [describe_pattern(entry.pattern) for entry in self._entries if entry.active]

    async def _register(self, kind: str, pattern: UrlPattern, handle: Callable, times: Optional[int]) -> _RouteEntry:
        if times is not None and times < 1:
            raise MockConfigurationError(CFG.ERROR_MOCK_TIMES)
        if self._page is None:
            raise RuntimeError(CFG.ERROR_PAGE_NOT_AVAILABLE)

        entry = _RouteEntry(kind=kind, pattern=pattern, handler=handle)
        route_pattern = CFG.CATCH_ALL_PATTERN if pattern is None else pattern

        # times считает только обслуженные запросы, fallback его не тратит
        async def _route(route):
            if times is not None and len(entry.calls) >= times:
                await route.fallback()
                return
            await handle(route, entry)
            if times is not None and len(entry.calls) >= times:
                await self._unroute(entry)
                self._logger.debug(f"{CFG.LOG_MOCK_EXHAUSTED}: {kind} {describe_pattern(pattern)}")

        entry.handler = _route
        await self._page.route(route_pattern, _route)
        self._entries.append(entry)
        self._logger.debug(f"{CFG.LOG_MOCK_REGISTERED}: {kind} {describe_pattern(pattern)}")
        return entry

    @beartype
    async def mock(
        self,
        pattern: UrlPattern,
        response: Union[MockResponse, dict, list],
        method: HttpMethod = HttpMethod.ANY,
        times: Optional[int] = None,
    ) -> None:
        """Отдавать фиксированный ответ на все подходящие запросы"""
        if not isinstance(response, MockResponse):
            response = MockResponse(json=response)

        async def handle(route, entry: _RouteEntry):
            request = route.request
            if not method.matches(request.method):
                await route.fallback()
                return
            entry.calls.append(Request.from_playwright(request))
            if response.delay:
                await asyncio.sleep(response.delay)
            await route.fulfill(**response.to_fulfill_kwargs())
            self._logger.debug(f"{CFG.LOG_MOCK_SERVED}: {response.status} {request.url}")

        await self._register("mock", pattern, handle, times)

    @beartype
    async def modify(
        self,
        pattern: UrlPattern,
        transform: Callable,
        method: HttpMethod = HttpMethod.ANY,
        times: Optional[int] = None,
    ) -> None:
        """
        Сходить в сеть, отдать распарсенный JSON в transform и вернуть браузеру результат.

        transform может менять данные на месте и ничего не возвращать.
        """
        async def handle(route, entry: _RouteEntry):
            request = route.request
            if not method.matches(request.method):
                await route.fallback()
                return
            entry.calls.append(Request.from_playwright(request))

            try:
                fetched = await route.fetch()
            except Exception as e:
                self._logger.warning(f"{CFG.LOG_FETCH_FAILED}: {request.url}: {e}")
                await route.abort()
                return

            try:
                data = await fetched.json()
                result = await call_maybe_async(transform, data)
            except Exception as e:
                self._logger.warning(f"{CFG.LOG_MODIFIER_FAILED}: {request.url}: {e}")
                await route.fulfill(response=fetched)
                return

            await route.fulfill(response=fetched, json=data if result is None else result)
            self._logger.debug(f"{CFG.LOG_TRANSFORM_APPLIED}: {request.url}")

        await self._register("modify", pattern, handle, times)

    @beartype
    async def continue_with_headers(
        self,
        pattern: UrlPattern,
        headers: Dict[str, Optional[str]],
        method: HttpMethod = HttpMethod.ANY,
        times: Optional[int] = None,
    ) -> None:
        """Пропустить запрос дальше с добавленными заголовками; значение None удаляет заголовок"""
        removed = {name.lower() for name, value in headers.items() if value is None}
        added = {name: value for name, value in headers.items() if value is not None}

        async def handle(route, entry: _RouteEntry):
            request = route.request
            if not method.matches(request.method):
                await route.fallback()
                return
            merged = {
                name: value for name, value in request.headers.items()
                if name.lower() not in removed
            }
            merged.update(added)
            entry.calls.append(Request.from_playwright(request))
            await route.continue_(headers=merged)
            self._logger.debug(f"{CFG.LOG_HEADERS_CONTINUED}: {request.url}")

        await self._register("continue", pattern, handle, times)

    @beartype
    async def abort(
        self,
        pattern: UrlPattern = None,
        resource_types: Iterable[str] = (),
        error_code: str = CFG.DEFAULT_ABORT_ERROR,
    ) -> None:
        """Обрывать запросы; с resource_types - только запросы этих типов (image, font, ...)"""
        if error_code not in CFG.ABORT_ERROR_CODES:
            raise MockConfigurationError(f"{CFG.ERROR_ABORT_CODE}: {error_code}")
        resource_types = frozenset(resource_types)

        async def handle(route, entry: _RouteEntry):
            request = route.request
            if resource_types and request.resource_type not in resource_types:
                await route.fallback()
                return
            entry.calls.append(Request.from_playwright(request))
            await route.abort(error_code)
            self._logger.debug(f"{CFG.LOG_REQUEST_ABORTED}: {request.url}")

        await self._register("abort", pattern, handle, None)

    @beartype
    def calls(self, pattern: UrlPattern = None) -> List[Request]:
        """Запросы, обслуженные маршрутами с данным паттерном (None - всеми)"""
        return [
            call
            for entry in self._entries
            if pattern is None or entry.pattern == pattern
            for call in entry.calls
        ]

    async def unmock(self, pattern: UrlPattern) -> None:
        for entry in [e for e in self._entries if e.pattern == pattern]:
            await self._remove(entry)

    async def unmock_all(self) -> None:
        for entry in list(self._entries):
            await self._remove(entry)

    async def _unroute(self, entry: _RouteEntry) -> None:
        if not entry.active:
            return
        entry.active = False
        route_pattern = CFG.CATCH_ALL_PATTERN if entry.pattern is None else entry.pattern
        await self._page.unroute(route_pattern, entry.handler)

    async def _remove(self, entry: _RouteEntry) -> None:
        await self._unroute(entry)
        self._entries.remove(entry)
        self._logger.debug(f"{CFG.LOG_MOCK_REMOVED}: {entry.kind} {describe_pattern(entry.pattern)}")
