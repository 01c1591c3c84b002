"""
Исполняемые версии примеров из docs/network-interception.md.

Каждая функция - отдельный раздел руководства: получает чистую страницу,
ставит свои маршруты или слушатели и переходит на демо-страницу. Общего состояния у функций нет.
"""
from beartype import beartype
from beartype.typing import List, Union
from .mock import ApiMocker, MockResponse
from .network_interceptor import NetworkInterceptor
from .handler import Handler, HandlerSearchSuccess
from .execute import Execute
from .models import Response
from . import config as CFG


# Данные мока вместо настоящего API фруктов
FRUITS = [{"name": "Strawberry", "id": 21}]
EXTRA_FRUIT = {"name": "Loquat", "id": 100}
TUTORIAL_HEADER = "x-tutorial"


async def mock_fruit_api(page, url: str = CFG.DEMO_URL) -> None:
    """Мок: API фруктов отвечает списком FRUITS, запрос до сервера не доходит"""
    async def handle(route):
        await route.fulfill(json=FRUITS)

    await page.route(CFG.FRUITS_API_PATTERN, handle)
    await page.goto(url)


async def modify_fruit_api_response(page, url: str = CFG.DEMO_URL) -> None:
    """Получает настоящий ответ, добавляет фрукт и отдаёт странице изменённый JSON"""
    async def handle(route):
        response = await route.fetch()
        json = await response.json()
        json.append(EXTRA_FRUIT)
        await route.fulfill(response=response, json=json)

    await page.route(CFG.FRUITS_API_PATTERN, handle)
    await page.goto(url)


async def continue_with_custom_header(page, url: str = CFG.DEMO_URL) -> None:
    """Продолжение: запросы уходят как обычно, но с дополнительным заголовком и без cookie"""
    async def handle(route):
        headers = {
            **route.request.headers,
            TUTORIAL_HEADER: "network-interception",
        }
        headers.pop("cookie", None)
        await route.continue_(headers=headers)

    await page.route(CFG.CATCH_ALL_PATTERN, handle)
    await page.goto(url)


async def block_images(page, url: str = CFG.DEMO_URL) -> None:
    """Обрывает все запросы картинок"""
    await page.route("**/*.{png,jpg,jpeg,gif,webp,svg}", lambda route: route.abort())
    await page.goto(url)


async def log_network_events(page, url: str = CFG.DEMO_URL) -> List[str]:
    """Подписка на события: записывает каждый запрос и ответ страницы"""
    log = []
    page.on("request", lambda request: log.append(f">> {request.method} {request.url}"))
    page.on("response", lambda response: log.append(f"<< {response.status} {response.url}"))
    await page.goto(url)
    return log


async def wait_for_fruit_response(page, url: str = CFG.DEMO_URL) -> Union[dict, list]:
    """Ожидание ответа: переход внутри expect_response и чтение JSON с фруктами"""
    async with page.expect_response("**/api/v1/fruits") as response_info:
        await page.goto(url)
    response = await response_info.value
    return await response.json()


@beartype
async def mock_fruit_api_with_mocker(page, url: str = CFG.DEMO_URL) -> ApiMocker:
    """Первый раздел ещё раз, через ApiMocker"""
    mocker = ApiMocker(page)
    await mocker.mock(CFG.FRUITS_API_PATTERN, MockResponse(json=FRUITS))
    await page.goto(url)
    return mocker


@beartype
async def capture_fruit_api(page, url: str = CFG.DEMO_URL) -> List[Response]:
    """Собирает ответ API фруктов через NetworkInterceptor во время загрузки страницы"""
    interceptor = NetworkInterceptor(page)
    results = await interceptor.execute(
        Handler.JSON(pattern="**/api/v1/fruits", execute=Execute.RETURN(max_responses=1)),
        trigger=lambda: page.goto(url),
    )
    found = results[0]
    return found.responses if isinstance(found, HandlerSearchSuccess) else []


SECTIONS = (
    mock_fruit_api,
    modify_fruit_api_response,
    continue_with_custom_header,
    block_images,
    log_network_events,
    wait_for_fruit_response,
    mock_fruit_api_with_mocker,
    capture_fruit_api,
)
