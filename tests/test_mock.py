import pytest
from playwright_mocking import ApiMocker, MockResponse, MockConfigurationError, HttpMethod
from .fakes import DEMO_URL, FRUITS_URL, LOGO_URL, SERVER_FRUITS

FRUITS_PATTERN = "*/**/api/v1/fruits"


def test_mock_response_validation():
    with pytest.raises(MockConfigurationError):
        MockResponse(json={"a": 1}, body="b")
    with pytest.raises(MockConfigurationError):
        MockResponse(status=700)
    with pytest.raises(MockConfigurationError):
        MockResponse(delay=-1.0)
    # ошибка конфигурации остаётся ValueError
    with pytest.raises(ValueError):
        MockResponse(status=99)


def test_mock_response_fulfill_kwargs():
    assert MockResponse(json=[{"id": 21}]).to_fulfill_kwargs() == {
        "status": 200,
        "headers": {},
        "body": b'[{"id": 21}]',
        "content_type": "application/json",
    }
    # явный content-type в заголовках не перетирается
    kwargs = MockResponse(status=404, body="nope", headers={"Content-Type": "text/html"}).to_fulfill_kwargs()
    assert kwargs == {"status": 404, "headers": {"Content-Type": "text/html"}, "body": b"nope"}


def test_mock_response_to_response():
    response = MockResponse(json={"ok": True}).to_response(url=FRUITS_URL)

    assert response.url == FRUITS_URL
    assert response.json() == {"ok": True}
    assert response.content_type == "application/json"


@pytest.mark.asyncio
async def test_mock_serves_fixed_json(page, server):
    mocker = ApiMocker(page)
    await mocker.mock(FRUITS_PATTERN, [{"name": "Strawberry", "id": 21}])

    response = await page.request(FRUITS_URL)

    assert await response.json() == [{"name": "Strawberry", "id": 21}]
    assert response.headers["content-type"] == "application/json"
    assert FRUITS_URL not in [call["url"] for call in server.calls]
    assert [call.url for call in mocker.calls(FRUITS_PATTERN)] == [FRUITS_URL]


@pytest.mark.asyncio
async def test_mock_method_mismatch_falls_back(page, server):
    mocker = ApiMocker(page)
    await mocker.mock(FRUITS_PATTERN, MockResponse(status=201, json={"created": True}), method=HttpMethod.POST)

    get_response = await page.request(FRUITS_URL)
    post_response = await page.request(FRUITS_URL, method="POST", post_data='{"name": "Kiwi"}')

    assert await get_response.json() == SERVER_FRUITS
    assert post_response.status == 201
    assert mocker.calls()[0].body == '{"name": "Kiwi"}'


@pytest.mark.asyncio
async def test_last_registered_mock_wins(page):
    mocker = ApiMocker(page)
    await mocker.mock(FRUITS_PATTERN, [{"name": "Old"}])
    await mocker.mock(FRUITS_PATTERN, [{"name": "New"}])

    response = await page.request(FRUITS_URL)

    assert await response.json() == [{"name": "New"}]


@pytest.mark.asyncio
async def test_mock_times_limits_route(page):
    mocker = ApiMocker(page)
    await mocker.mock(FRUITS_PATTERN, [], times=1)

    first = await page.request(FRUITS_URL)
    second = await page.request(FRUITS_URL)

    assert await first.json() == []
    assert await second.json() == SERVER_FRUITS


@pytest.mark.asyncio
async def test_mock_times_counts_only_matching_method(page, server):
    mocker = ApiMocker(page)
    await mocker.mock(FRUITS_PATTERN, MockResponse(status=201, json={"created": True}), method=HttpMethod.POST, times=1)

    get_response = await page.request(FRUITS_URL)
    first_post = await page.request(FRUITS_URL, method="POST", post_data="{}")
    second_post = await page.request(FRUITS_URL, method="POST", post_data="{}")

    assert get_response.status == 200
    assert first_post.status == 201
    assert second_post.status == 200
    assert [call["method"] for call in server.calls] == ["GET", "POST"]
    assert page.routes == []
    # журнал вызовов переживает снятие маршрута
    assert [call.method for call in mocker.calls(FRUITS_PATTERN)] == [HttpMethod.POST]
    assert mocker.patterns == []


@pytest.mark.asyncio
async def test_mock_rejects_bad_times(page):
    with pytest.raises(MockConfigurationError):
        await ApiMocker(page).mock(FRUITS_PATTERN, [], times=0)


@pytest.mark.asyncio
async def test_modify_patches_real_response(page, server):
    mocker = ApiMocker(page)
    await mocker.modify(FRUITS_PATTERN, lambda fruits: fruits.append({"name": "Loquat", "id": 100}))

    response = await page.request(FRUITS_URL)

    assert await response.json() == SERVER_FRUITS + [{"name": "Loquat", "id": 100}]
    assert server.calls[-1]["url"] == FRUITS_URL


@pytest.mark.asyncio
async def test_modify_async_transform_result_is_used(page):
    async def only_first(fruits):
        return fruits[:1]

    mocker = ApiMocker(page)
    await mocker.modify(FRUITS_PATTERN, only_first)

    response = await page.request(FRUITS_URL)

    assert await response.json() == SERVER_FRUITS[:1]


@pytest.mark.asyncio
async def test_modify_non_json_passes_original(page):
    mocker = ApiMocker(page)
    await mocker.modify("**/*.png", lambda data: data)

    response = await page.request(LOGO_URL)

    assert await response.body() == b"\x89PNG\r\n"
    assert page.handled_routes[-1].fulfill_kwargs["json"] is None


@pytest.mark.asyncio
async def test_modify_fetch_failure_aborts(page):
    page.fetch_error = RuntimeError("connection refused")
    mocker = ApiMocker(page)
    await mocker.modify(FRUITS_PATTERN, lambda fruits: fruits)

    response = await page.request(FRUITS_URL)

    assert response is None
    assert page.handled_routes[-1].outcome == "abort"


@pytest.mark.asyncio
async def test_continue_with_headers(page, server):
    mocker = ApiMocker(page)
    await mocker.continue_with_headers("**/*", {"x-tutorial": "1", "Cookie": None})

    await page.request(FRUITS_URL)

    sent = server.calls[-1]["headers"]
    assert sent["x-tutorial"] == "1"
    assert "cookie" not in sent
    assert sent["user-agent"] == "fake"


@pytest.mark.asyncio
async def test_abort_by_resource_type(page, server):
    mocker = ApiMocker(page)
    await mocker.abort(resource_types=["image"])

    await page.goto(DEMO_URL)

    served = [call["url"] for call in server.calls]
    assert LOGO_URL not in served
    assert FRUITS_URL in served
    assert [call.url for call in mocker.calls()] == [LOGO_URL]


@pytest.mark.asyncio
async def test_abort_rejects_unknown_error_code(page):
    with pytest.raises(MockConfigurationError):
        await ApiMocker(page).abort("**/*", error_code="boom")


@pytest.mark.asyncio
async def test_unmock_and_context_manager(page):
    async with ApiMocker(page) as mocker:
        await mocker.mock(FRUITS_PATTERN, [])
        await mocker.mock("**/*.png", MockResponse(status=404))
        assert len(page.routes) == 2

        await mocker.unmock(FRUITS_PATTERN)
        assert mocker.patterns == ["**/*.png"]

    assert page.routes == []
