import copy
import time
import asyncio
import logging
from beartype import beartype
from beartype.typing import Union, Optional, List, Dict, Callable
from .models import Request, Response, HttpMethod
from .execute import ExecuteAction
from .handler import Handler, HandlerSearchSuccess, HandlerSearchFailed, content_type_matches
from .tools import call_maybe_async
from . import config as CFG


HandlerResult = Union[HandlerSearchSuccess, HandlerSearchFailed]


class MultiRequestInterceptor:
    """Обработчик маршрута `**/*`, раздающий каждый запрос списку хандлеров"""

    def __init__(self, logger: logging.Logger, handlers: List[Handler], base_url: Optional[str], start_time: float):
        self._logger = logger
        self.handlers = handlers
        self.base_url = base_url
        self.start_time = start_time
        self.rejected_responses: List[Response] = []

        # Результаты и счётчики каждого хандлера (ключ - slug)
        self.handler_results: Dict[str, List[Response]] = {handler.slug: [] for handler in handlers}
        self.modifications: Dict[str, int] = {handler.slug: 0 for handler in handlers}

        self.completion_future = asyncio.get_running_loop().create_future()

    def _can_modify(self, handler: Handler) -> bool:
        limit = handler.max_modifications
        return limit is None or self.modifications[handler.slug] < limit

    def _can_collect(self, handler: Handler) -> bool:
        limit = handler.max_responses
        return limit is None or len(self.handler_results[handler.slug]) < limit

    def _elapsed(self) -> float:
        return time.time() - self.start_time

    def _active(self, action: ExecuteAction, url: str, method: str) -> List[Handler]:
        return [
            handler for handler in self.handlers
            if handler.execute.action == action
            and self._can_modify(handler)
            and handler.should_intercept(url, method, self.base_url)
        ]

    async def handle_route(self, route):
        """Обработчик маршрута для перехвата запросов"""
        request = route.request
        url, method = request.url, request.method

        if self.completion_future.done():
            await route.fallback()
            return

        # 1. Моки - без похода в сеть
        for handler in self._active(ExecuteAction.MOCK, url, method):
            mock = handler.execute.mock
            self.modifications[handler.slug] += 1
            response = mock.to_response(url=url, request_headers=dict(request.headers))
            self.handler_results[handler.slug].append(response)
            if mock.delay:
                await asyncio.sleep(mock.delay)
            await route.fulfill(**mock.to_fulfill_kwargs())
            self._logger.info(f"Handler {handler.slug} mocked {url}")
            self._collect(response, url, method)
            self._check_completion()
            return

        # 2. Обрыв запроса
        for handler in self._active(ExecuteAction.ABORT, url, method):
            self.modifications[handler.slug] += 1
            self.handler_results[handler.slug].append(Response(
                status=0,
                request_headers=dict(request.headers),
                response_headers={},
                duration=self._elapsed(),
                url=url,
            ))
            await route.abort(handler.execute.error_code)
            self._logger.info(f"Handler {handler.slug} aborted {url}")
            self._check_completion()
            return

        # Route.fetch() не умеет ходить по протоколам расширений
        if url.startswith(CFG.UNSUPPORTED_PROTOCOLS):
            self._logger.debug(f"{CFG.LOG_UNSUPPORTED_PROTOCOL}: {url}")
            await route.continue_()
            return

        modifiers = [
            handler for handler in self.handlers
            if handler.execute.modifies
            and self._can_modify(handler)
            and handler.should_intercept(url, method, self.base_url)
        ]

        # 3. Модификация запроса перед отправкой
        try:
            original = Request.from_playwright(request)
        except Exception as e:
            self._logger.warning(f"{CFG.LOG_REQUEST_UNREADABLE}: {url}: {e}")
            await route.continue_()
            return
        current = copy.deepcopy(original)
        request_modifiers = [h for h in modifiers if h.execute.request_modify is not None]
        for handler in request_modifiers:
            current = await self._apply_request_modifier(handler, current)

        # 4. Реальный запрос
        try:
            fetched = await route.fetch(**self._fetch_overrides(original, current))
        except Exception as e:
            self._logger.warning(f"{CFG.LOG_FETCH_FAILED}: {url}: {e}")
            await route.abort()
            return

        response = Response(
            status=fetched.status,
            request_headers=dict(current.headers),
            response_headers=dict(fetched.headers),
            content=await fetched.body(),
            duration=self._elapsed(),
            url=fetched.url,
        )

        # 5. Модификация ответа перед отдачей браузеру
        # тип содержимого известен только сейчас
        response_modifiers = [
            h for h in modifiers
            if h.execute.response_modify is not None
            and content_type_matches(h.expected_content, response.content_type)
        ]
        for handler in response_modifiers:
            response = await self._apply_response_modifier(handler, response)

        for handler in modifiers:
            if handler not in request_modifiers and handler not in response_modifiers:
                continue
            self.modifications[handler.slug] += 1
            if handler.execute.action == ExecuteAction.MODIFY:
                self.handler_results[handler.slug].append(response)

        if response_modifiers:
            await route.fulfill(**response.to_fulfill_kwargs())
        else:
            await route.fulfill(response=fetched)

        # 6. Сбор ответов
        self._collect(response, url, method)
        self._check_completion()

    @staticmethod
    def _fetch_overrides(original: Request, current: Request) -> dict:
        overrides = {}
        if current.real_url != original.real_url:
            overrides["url"] = current.real_url
        if current.method != original.method:
            overrides["method"] = current.method.value
        if current.headers != original.headers:
            overrides["headers"] = current.headers
        if current.body != original.body:
            overrides["post_data"] = current.post_data
        return overrides

    async def _apply_request_modifier(self, handler: Handler, request: Request) -> Request:
        try:
            result = await call_maybe_async(handler.execute.request_modify, copy.deepcopy(request))
        except Exception as e:
            self._logger.warning(f"{CFG.LOG_MODIFIER_FAILED} ({handler.slug}): {e}")
            return request

        if not isinstance(result, Request):
            self._logger.warning(f"{CFG.LOG_MODIFIER_BAD_TYPE} ({handler.slug}): {type(result)}")
            return request
        if result.method == HttpMethod.ANY and request.method != HttpMethod.ANY:
            self._logger.warning(f"{CFG.LOG_REQUEST_MODIFIER_ANY_TYPE} ({handler.slug})")
            result.method = request.method
        self._logger.debug(f"{CFG.LOG_REQUEST_MODIFIED} {handler.slug}: {result}")
        return result

    async def _apply_response_modifier(self, handler: Handler, response: Response) -> Response:
        try:
            result = await call_maybe_async(handler.execute.response_modify, response)
        except Exception as e:
            self._logger.warning(f"{CFG.LOG_MODIFIER_FAILED} ({handler.slug}): {e}")
            return response

        if not isinstance(result, Response):
            self._logger.warning(f"{CFG.LOG_MODIFIER_BAD_TYPE} ({handler.slug}): {type(result)}")
            return response
        self._logger.debug(f"{CFG.LOG_RESPONSE_MODIFIED} {handler.slug}: {result}")
        return result

    def _collect(self, response: Response, url: str, method: str) -> None:
        """Раздаёт ответ собирающим хандлерам, остальное - в отклонённые"""
        captured = False
        for handler in self.handlers:
            if not handler.execute.collects or not self._can_collect(handler):
                continue
            # сверяем с URL браузера: модификатор мог переписать адрес запроса
            if handler.should_capture(url, method, response.content_type, self.base_url):
                self.handler_results[handler.slug].append(response)
                captured = True
                self._logger.info(
                    f"Handler {handler.slug} {CFG.LOG_HANDLER_CAPTURED} {response.url} "
                    f"({len(self.handler_results[handler.slug])}/{handler.max_responses or 'unlimited'})"
                )

        if not captured:
            self.rejected_responses.append(response)
            self._logger.debug(f"All handlers {CFG.LOG_HANDLER_REJECTED}: {response.url} (content-type: {response.content_type or CFG.UNKNOWN_HEADER_TYPE})")

    def _is_done(self, handler: Handler) -> bool:
        if handler.execute.collects:
            return handler.max_responses is not None and not self._can_collect(handler)
        return handler.max_modifications is not None and not self._can_modify(handler)

    def _check_completion(self) -> None:
        """Проверяет, завершены ли все хандлеры"""
        if self.completion_future.done():
            return
        if all(self._is_done(handler) for handler in self.handlers):
            self._logger.info(CFG.LOG_ALL_HANDLERS_DONE)
            self.completion_future.set_result(self._build_results())

    def _build_results(self) -> List[HandlerResult]:
        duration = self._elapsed()
        result = []
        for handler in self.handlers:
            responses = self.handler_results[handler.slug]
            if responses:
                result.append(HandlerSearchSuccess(responses=list(responses), duration=duration, handler_slug=handler.slug))
            else:
                result.append(HandlerSearchFailed(rejected_responses=list(self.rejected_responses), duration=duration, handler_slug=handler.slug))
        return result

    async def wait_for_results(self, timeout: float) -> List[HandlerResult]:
        """Ожидает результатов всех хандлеров с таймаутом"""
        try:
            return await asyncio.wait_for(asyncio.shield(self.completion_future), timeout)
        except asyncio.TimeoutError:
            self._logger.warning(f"{CFG.LOG_INTERCEPT_TIMEOUT} {self.base_url or CFG.CATCH_ALL_PATTERN}. Duration: {self._elapsed():.3f}s")
            results = self._build_results()
            if not self.completion_future.done():
                self.completion_future.set_result(results)
            return results


class NetworkInterceptor:
    """Перехват всех запросов страницы через page.route() по набору хандлеров"""

    @beartype
    def __init__(self, page, timeout: Union[int, float] = CFG.DEFAULT_TIMEOUT):
        self._page = page
        self.timeout = timeout

        self._logger = logging.getLogger(self.__class__.__name__)
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('[%(asctime)s] %(levelname)s %(name)s: %(message)s'))
        if not self._logger.hasHandlers():
            self._logger.addHandler(handler)

    @property
    def page(self):
        return self._page

    @property
    def timeout(self) -> float:
        return self._timeout

    @timeout.setter
    @beartype
    def timeout(self, value: Union[int, float]) -> None:
        if value <= 0:
            raise ValueError(CFG.ERROR_TIMEOUT_POSITIVE)
        if value > CFG.MAX_TIMEOUT_SECONDS:
            raise ValueError(CFG.ERROR_TIMEOUT_TOO_LARGE)
        self._timeout = float(value)

    @staticmethod
    def _normalize(handlers: Union[Handler, List[Handler]]) -> List[Handler]:
        if isinstance(handlers, Handler):
            handlers = [handlers]
        if not handlers:
            raise ValueError("At least one handler is required")

        seen, duplicates = set(), []
        for handler in handlers:
            if handler.slug in seen:
                duplicates.append(handler.slug)
            seen.add(handler.slug)
        if duplicates:
            raise ValueError(f"{CFG.ERROR_DUPLICATE_SLUGS}: {duplicates}")
        return handlers

    @beartype
    async def execute(
        self,
        handlers: Union[Handler, List[Handler]],
        timeout: Optional[Union[int, float]] = None,
        base_url: Optional[str] = None,
        trigger: Optional[Callable] = None,
    ) -> List[HandlerResult]:
        """
        Перехватывает запросы страницы, пока все хандлеры не наберут свои лимиты или не выйдет время.

        Args:
            handlers: Один хандлер или список хандлеров (slug'и должны быть уникальны)
            timeout: Таймаут в секундах, по умолчанию - таймаут перехватчика
            base_url: URL основной страницы для Handler.MAIN()
            trigger: Корутинная функция, запускаемая после установки маршрута (например переход)

        Returns:
            По одному HandlerSearchSuccess/HandlerSearchFailed на каждый хандлер, в исходном порядке
        """
        if self._page is None:
            raise RuntimeError(CFG.ERROR_PAGE_NOT_AVAILABLE)

        handlers = self._normalize(handlers)
        interceptor = MultiRequestInterceptor(self._logger, handlers, base_url, time.time())

        await self._page.route(CFG.CATCH_ALL_PATTERN, interceptor.handle_route)
        self._logger.debug(f"{CFG.LOG_ROUTE_INSTALLED}: {handlers}")
        trigger_task = asyncio.ensure_future(trigger()) if trigger is not None else None
        try:
            return await interceptor.wait_for_results(timeout or self.timeout)
        finally:
            await self._page.unroute(CFG.CATCH_ALL_PATTERN, interceptor.handle_route)
            self._logger.debug(CFG.LOG_ROUTE_REMOVED)
            if trigger_task is not None:
                try:
                    await trigger_task
                except Exception as e:
                    self._logger.warning(f"Trigger failed: {e}")

    @beartype
    async def direct_fetch(
        self,
        url: str,
        handlers: Optional[Union[Handler, List[Handler]]] = None,
        wait_selector: Optional[str] = None,
    ) -> List[HandlerResult]:
        """Переходит на url и собирает ответы хандлерами (по умолчанию - основной документ)"""
        async def navigate():
            await self._page.goto(url)
            if wait_selector:
                await self._page.wait_for_selector(
                    wait_selector,
                    timeout=self.timeout * CFG.MILLISECONDS_MULTIPLIER,
                )

        return await self.execute(handlers or Handler.MAIN(), base_url=url, trigger=navigate)
