import time
import asyncio
import logging
from beartype import beartype
from beartype.typing import Optional, Callable, List, Union
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from .exceptions import ResponseWaitTimeout
from .models import Request, Response, HttpMethod
from .tools import UrlPattern, url_matches, describe_pattern, call_maybe_async
from . import config as CFG


_logger = logging.getLogger("ResponseWaiter")


async def _to_model(response, started: float) -> Response:
    return Response(
        status=response.status,
        request_headers=dict(response.request.headers),
        response_headers=dict(response.headers),
        content=await response.body(),
        duration=time.time() - started,
        url=response.url,
    )


@beartype
async def wait_for_response(
    page,
    pattern: UrlPattern,
    trigger: Optional[Callable] = None,
    timeout: Union[int, float] = CFG.DEFAULT_TIMEOUT,
    status: Optional[int] = None,
    method: HttpMethod = HttpMethod.ANY,
) -> Response:
    """
    Ждёт первый ответ под pattern, запуская trigger внутри окна ожидания.

    Args:
        page: Страница Playwright
        pattern: glob, регулярное выражение или предикат по URL
        trigger: Действие, порождающее запрос (клик, переход); синхронное или асинхронное
        timeout: Таймаут в секундах
        status: Ждать только ответ с этим статусом
        method: Ждать только ответ на запрос этим методом

    Raises:
        ResponseWaitTimeout: если подходящий ответ не пришёл вовремя
    """
    def predicate(response) -> bool:
        return (
            url_matches(pattern, response.url)
            and (status is None or response.status == status)
            and method.matches(response.request.method)
        )

    described = describe_pattern(pattern)
    _logger.debug(f"{CFG.LOG_WAITING_RESPONSE}: {described}")
    started = time.time()
    try:
        async with page.expect_response(predicate, timeout=timeout * CFG.MILLISECONDS_MULTIPLIER) as response_info:
            if trigger is not None:
                await call_maybe_async(trigger)
        response = await response_info.value
    except PlaywrightTimeoutError as e:
        raise ResponseWaitTimeout(
            f"{CFG.ERROR_RESPONSE_WAIT_TIMEOUT} {timeout}s: {described}",
            pattern=described,
            timeout=float(timeout),
        ) from e

    return await _to_model(response, started)


@beartype
async def wait_for_request(
    page,
    pattern: UrlPattern,
    trigger: Optional[Callable] = None,
    timeout: Union[int, float] = CFG.DEFAULT_TIMEOUT,
) -> Request:
    """Ждёт первый запрос под pattern и возвращает его как Request"""
    described = describe_pattern(pattern)
    _logger.debug(f"{CFG.LOG_WAITING_REQUEST}: {described}")
    try:
        async with page.expect_request(
            lambda request: url_matches(pattern, request.url),
            timeout=timeout * CFG.MILLISECONDS_MULTIPLIER,
        ) as request_info:
            if trigger is not None:
                await call_maybe_async(trigger)
        request = await request_info.value
    except PlaywrightTimeoutError as e:
        raise ResponseWaitTimeout(
            f"{CFG.ERROR_REQUEST_WAIT_TIMEOUT} {timeout}s: {described}",
            pattern=described,
            timeout=float(timeout),
        ) from e

    return Request.from_playwright(request)


@beartype
async def collect_responses(
    page,
    pattern: UrlPattern,
    count: int,
    trigger: Optional[Callable] = None,
    timeout: Union[int, float] = CFG.DEFAULT_TIMEOUT,
) -> List[Response]:
    """Собирает первые count ответов под pattern через подписку на событие response"""
    if count < 1:
        raise ValueError("count must be positive")

    described = describe_pattern(pattern)
    started = time.time()
    collected = []
    done = asyncio.get_running_loop().create_future()

    def _on_response(response):
        if done.done() or not url_matches(pattern, response.url):
            return
        collected.append(response)
        if len(collected) >= count:
            done.set_result(None)

    page.on("response", _on_response)
    try:
        if trigger is not None:
            await call_maybe_async(trigger)
        await asyncio.wait_for(done, timeout)
    except asyncio.TimeoutError as e:
        raise ResponseWaitTimeout(
            f"{CFG.ERROR_RESPONSE_WAIT_TIMEOUT} {timeout}s: {described} ({len(collected)}/{count})",
            pattern=described,
            timeout=float(timeout),
        ) from e
    finally:
        page.remove_listener("response", _on_response)

    return [await _to_model(response, started) for response in collected]
