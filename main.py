from playwright_mocking import MockingSession, BrowserEngine, NetworkRecorder, Handler, Execute, Request, Response, guide
from playwright_mocking import config as CFG
import asyncio

async def main():
    async with MockingSession(engine=BrowserEngine.CHROMIUM, debug=False) as session:
        # Каждая секция гайда - на своей чистой странице
        for section in guide.SECTIONS:
            page = await session.new_page()
            async with NetworkRecorder(page) as recorder:
                result = await section(page)
            print(f"{section.__name__}: {recorder.summary()}")
            if result is not None:
                print("  ->", result)
            await page.close()

        page = await session.new_page()
        interceptor = session.interceptor(page)
        interceptor._logger.setLevel("DEBUG")

        results = await interceptor.execute(
            Handler.JSON(pattern="**/api/v1/fruits", execute=Execute.ALL(
                request_modify=request_modifier,
                response_modify=response_modifier,
                max_modifications=1,
                max_responses=1
            )),
            trigger=lambda: page.goto(CFG.DEMO_URL),
        )
        print("Results:", results)

def request_modifier(request: Request) -> Request:
    """Модифицирует запрос перед отправкой на сервер"""
    print(f"Modifying request: {request.method.value} {request.url}")
    request.add_header(guide.TUTORIAL_HEADER, "main")
    return request

def response_modifier(response: Response) -> Response:
    """Добавляет фрукт в ответ API"""
    fruits = response.content_parse()
    fruits.append(guide.EXTRA_FRUIT)
    response.set_json(fruits)
    return response

if __name__ == "__main__":
    asyncio.run(main())
