"""
NetworkInterceptor over an in-memory page: capture, modification, mocks and aborts
"""
import json
import pytest
from playwright_mocking import (
    NetworkInterceptor,
    Handler,
    Execute,
    Request,
    Response,
    HttpMethod,
    MockResponse,
    HandlerSearchSuccess,
    HandlerSearchFailed,
)
from .fakes import DEMO_URL, FRUITS_URL, LOGO_URL, SERVER_FRUITS, UnreadableBodyRequest

TIMEOUT = 0.2


def navigate(page, url=DEMO_URL):
    return lambda: page.goto(url)


@pytest.mark.asyncio
async def test_capture_json_response(page):
    interceptor = NetworkInterceptor(page, timeout=TIMEOUT)

    results = await interceptor.execute(Handler.JSON(), trigger=navigate(page))

    assert len(results) == 1
    assert isinstance(results[0], HandlerSearchSuccess)
    response = results[0].responses[0]
    assert response.url == FRUITS_URL
    assert response.content_parse() == SERVER_FRUITS
    # маршрут снят после завершения
    assert page.routes == []


@pytest.mark.asyncio
async def test_direct_fetch_main_document(page):
    interceptor = NetworkInterceptor(page, timeout=TIMEOUT)

    results = await interceptor.direct_fetch(DEMO_URL, wait_selector="#fruits")

    assert isinstance(results[0], HandlerSearchSuccess)
    assert results[0].responses[0].content_parse().startswith("<!DOCTYPE html>")
    assert page.selectors == [("#fruits", TIMEOUT * 1000)]


@pytest.mark.asyncio
async def test_multiple_handlers_in_input_order(page):
    interceptor = NetworkInterceptor(page, timeout=TIMEOUT)

    image, fruits = Handler.IMAGE(slug="image"), Handler.JSON(slug="fruits")
    results = await interceptor.execute([image, fruits], trigger=navigate(page))

    assert [r.handler_slug for r in results] == ["image", "fruits"]
    assert all(isinstance(r, HandlerSearchSuccess) for r in results)
    assert results[0].responses[0].url == LOGO_URL


@pytest.mark.asyncio
async def test_failed_handler_keeps_rejected_responses(page):
    interceptor = NetworkInterceptor(page, timeout=TIMEOUT)

    results = await interceptor.execute(Handler.NONE(), trigger=navigate(page))

    assert isinstance(results[0], HandlerSearchFailed)
    assert {r.url for r in results[0].rejected_responses} == {DEMO_URL, FRUITS_URL, LOGO_URL}
    assert results[0].duration > 0


@pytest.mark.asyncio
async def test_duplicate_slugs_rejected(page):
    interceptor = NetworkInterceptor(page, timeout=TIMEOUT)

    with pytest.raises(ValueError, match="Duplicate handler slugs"):
        await interceptor.execute([Handler.JSON(slug="same"), Handler.CSS(slug="same")])
    assert page.routes == []


def test_timeout_validation(page):
    with pytest.raises(ValueError, match="positive"):
        NetworkInterceptor(page, timeout=0)
    with pytest.raises(ValueError, match="too large"):
        NetworkInterceptor(page, timeout=3601)


@pytest.mark.asyncio
async def test_request_modification_reaches_server(page, server):
    def add_tracking(request: Request) -> Request:
        request.add_header("X-Modified-By", "NetworkInterceptor")
        request.add_param("intercepted", "true")
        return request

    interceptor = NetworkInterceptor(page, timeout=TIMEOUT)
    handler = Handler.ALL(
        pattern="**/api/v1/fruits",
        execute=Execute.ALL(request_modify=add_tracking, max_modifications=1, max_responses=1),
    )

    results = await interceptor.execute(handler, trigger=navigate(page))

    fruit_call = [call for call in server.calls if call["url"].startswith(FRUITS_URL)][0]
    assert fruit_call["url"] == FRUITS_URL + "?intercepted=true"
    assert fruit_call["headers"]["X-Modified-By"] == "NetworkInterceptor"
    assert results[0].responses[0].request_headers["X-Modified-By"] == "NetworkInterceptor"


def tag_request(request: Request) -> Request:
    request.add_header("X-Modified-By", "NetworkInterceptor")
    return request


@pytest.mark.asyncio
async def test_nonstandard_method_keeps_its_method(page, server):
    interceptor = NetworkInterceptor(page, timeout=TIMEOUT)
    handler = Handler.ANY(
        pattern="**/api/v1/fruits",
        execute=Execute.ALL(request_modify=tag_request, max_modifications=1, max_responses=1),
    )

    results = await interceptor.execute(handler, trigger=lambda: page.request(FRUITS_URL, method="PROPFIND"))

    assert isinstance(results[0], HandlerSearchSuccess)
    assert server.calls[-1]["method"] == "PROPFIND"
    assert server.calls[-1]["headers"]["X-Modified-By"] == "NetworkInterceptor"
    assert page.handled_routes[-1].fetch_kwargs["method"] is None


@pytest.mark.asyncio
async def test_binary_body_is_forwarded_untouched(page, server):
    interceptor = NetworkInterceptor(page, timeout=TIMEOUT)
    handler = Handler.ANY(
        pattern="**/api/v1/fruits",
        execute=Execute.ALL(request_modify=tag_request, max_modifications=1, max_responses=1),
    )
    request = UnreadableBodyRequest(
        FRUITS_URL,
        UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte"),
        post_data=b"\xff\xfe",
    )

    results = await interceptor.execute(handler, trigger=lambda: page.send(request))

    assert isinstance(results[0], HandlerSearchSuccess)
    assert server.calls[-1]["post_data"] == b"\xff\xfe"
    assert server.calls[-1]["headers"]["X-Modified-By"] == "NetworkInterceptor"
    assert page.handled_routes[-1].fetch_kwargs["post_data"] is None


@pytest.mark.asyncio
async def test_unreadable_request_passes_through(page, server):
    interceptor = NetworkInterceptor(page, timeout=TIMEOUT)
    handler = Handler.ANY(pattern="**/api/v1/fruits", execute=Execute.ALL(request_modify=tag_request))
    request = UnreadableBodyRequest(FRUITS_URL, RuntimeError("request is gone"), post_data="{}")

    await interceptor.execute(handler, trigger=lambda: page.send(request))

    route = page.handled_routes[-1]
    assert route.outcome == "continue"
    assert route.fetch_kwargs is None
    assert server.calls[-1]["url"] == FRUITS_URL


@pytest.mark.asyncio
async def test_unmodified_request_is_fetched_as_is(page):
    interceptor = NetworkInterceptor(page, timeout=TIMEOUT)

    await interceptor.execute(Handler.JSON(), trigger=navigate(page))

    fetches = [route.fetch_kwargs for route in page.handled_routes if route.fetch_kwargs is not None]
    assert fetches and all(kwargs == {"url": None, "method": None, "headers": None, "post_data": None} for kwargs in fetches)


@pytest.mark.asyncio
async def test_response_modification_reaches_browser(page):
    async def add_marker(response: Response) -> Response:
        data = response.content_parse()
        data.append({"name": "INTERCEPTED", "id": 0})
        response.set_json(data)
        response.response_headers["X-Intercepted"] = "true"
        return response

    interceptor = NetworkInterceptor(page, timeout=TIMEOUT)
    handler = Handler.JSON(execute=Execute.MODIFY(response_modify=add_marker, max_modifications=1))

    results = await interceptor.execute(handler, trigger=navigate(page))

    browser_side = [r for r in page.handled_routes if r.request.url == FRUITS_URL][0].result
    assert json.loads(browser_side._body)[-1] == {"name": "INTERCEPTED", "id": 0}
    assert browser_side.headers["X-Intercepted"] == "true"
    assert isinstance(results[0], HandlerSearchSuccess)


@pytest.mark.asyncio
async def test_modifiers_apply_sequentially(page):
    order = []

    def first(request: Request) -> Request:
        order.append("first")
        request.add_header("X-Handler1", "true")
        return request

    def second(request: Request) -> Request:
        order.append("second")
        assert request.headers["X-Handler1"] == "true"
        return request

    interceptor = NetworkInterceptor(page, timeout=TIMEOUT)
    handlers = [
        Handler.ALL(slug="h1", pattern="**/api/**", execute=Execute.MODIFY(request_modify=first)),
        Handler.ALL(slug="h2", pattern="**/api/**", execute=Execute.MODIFY(request_modify=second)),
    ]

    results = await interceptor.execute(handlers, trigger=navigate(page))

    assert order == ["first", "second"]
    assert all(isinstance(r, HandlerSearchSuccess) for r in results)


@pytest.mark.asyncio
async def test_broken_modifier_keeps_original(page, server):
    def broken(request):
        raise RuntimeError("boom")

    def wrong_type(response):
        return "not a response"

    interceptor = NetworkInterceptor(page, timeout=TIMEOUT)
    handler = Handler.JSON(
        pattern="**/api/v1/fruits",
        execute=Execute.ALL(request_modify=broken, response_modify=wrong_type, max_modifications=1, max_responses=1),
    )

    results = await interceptor.execute(handler, trigger=navigate(page))

    assert results[0].responses[0].content_parse() == SERVER_FRUITS


@pytest.mark.asyncio
async def test_mock_handler_skips_network(page, server):
    interceptor = NetworkInterceptor(page, timeout=TIMEOUT)
    mock = Handler.ALL(
        slug="mock",
        pattern="*/**/api/v1/fruits",
        method=HttpMethod.GET,
        execute=Execute.MOCK(MockResponse(json=[{"name": "Strawberry", "id": 21}]), max_modifications=1),
    )
    collect = Handler.JSON(slug="collect")

    results = await interceptor.execute([mock, collect], trigger=navigate(page))

    assert FRUITS_URL not in [call["url"] for call in server.calls]
    assert results[1].responses[0].json() == [{"name": "Strawberry", "id": 21}]


@pytest.mark.asyncio
async def test_abort_handler(page, server):
    interceptor = NetworkInterceptor(page, timeout=TIMEOUT)
    handler = Handler.IMAGE(pattern="**/*.png", execute=Execute.ABORT("blockedbyclient", max_modifications=1))

    results = await interceptor.execute(handler, trigger=navigate(page))

    assert LOGO_URL not in [call["url"] for call in server.calls]
    assert results[0].responses[0].status == 0
    aborted = [r for r in page.handled_routes if r.outcome == "abort"][0]
    assert aborted.error_code == "blockedbyclient"


@pytest.mark.asyncio
async def test_fetch_failure_aborts_request(page):
    page.fetch_error = RuntimeError("connection refused")
    interceptor = NetworkInterceptor(page, timeout=TIMEOUT)

    results = await interceptor.execute(Handler.JSON(), trigger=navigate(page))

    assert isinstance(results[0], HandlerSearchFailed)
    assert all(route.outcome == "abort" for route in page.handled_routes)


@pytest.mark.asyncio
async def test_unsupported_protocol_passes_through(page):
    interceptor = NetworkInterceptor(page, timeout=TIMEOUT)
    page.server.add("chrome-extension://abc/script.js", "void 0", content_type="application/javascript", parent=DEMO_URL)

    await interceptor.execute(Handler.NONE(), trigger=navigate(page))

    extension_route = [r for r in page.handled_routes if r.request.url.startswith("chrome-extension:")][0]
    assert extension_route.outcome == "continue"
    assert extension_route.fetch_kwargs is None
