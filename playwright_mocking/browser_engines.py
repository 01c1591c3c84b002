from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Optional, Tuple

__all__ = [
    "BrowserEngine",
    "BaseBrowserConfig",
    "CamoufoxConfig",
    "PlaywrightConfig",
]


class BrowserEngine(Enum):
    CAMOUFOX = auto()
    FIREFOX = auto()
    CHROMIUM = auto()
    WEBKIT = auto()

    def __call__(self, **kwargs) -> "BaseBrowserConfig":
        if self is BrowserEngine.CAMOUFOX:
            return CamoufoxConfig(**kwargs)
        return PlaywrightConfig(engine=self, **kwargs)


@dataclass(slots=True)
class BaseBrowserConfig:
    """
    Как запустить браузер и с какими опциями открывать контекст.

    Service worker'ы по умолчанию блокируются: их запросы не проходят через page.route().
    """

    headless: Optional[bool] = None
    block_service_workers: bool = True
    extra_context_options: dict = field(default_factory=dict)

    def resolve_headless(self, debug: bool) -> bool:
        return self.headless if self.headless is not None else not debug

    def context_options(self) -> dict:
        options = {"service_workers": "block" if self.block_service_workers else "allow"}
        options.update(self.extra_context_options)
        return options

    async def initialize(
        self, proxy: Optional[dict], debug: bool
    ) -> Tuple[Any, dict, Optional[Any]]:
        """Запускает браузер: (browser, опции контекста, объект для shutdown)"""
        raise NotImplementedError

    async def shutdown(self, browser: Any, extra: Optional[Any]) -> None:
        raise NotImplementedError


@dataclass(slots=True)
class CamoufoxConfig(BaseBrowserConfig):
    humanization: Any = True
    geoip: bool = True

    async def initialize(
        self, proxy: Optional[dict], debug: bool
    ) -> Tuple[Any, dict, Optional[Any]]:
        try:
            from camoufox import AsyncCamoufox
        except ImportError as e:
            raise ImportError(
                "Camoufox is not installed. Install with 'pip install playwright_mocking[camoufox]'"
            ) from e

        manager = AsyncCamoufox(
            headless=self.resolve_headless(debug),
            humanize=self.humanization,
            proxy=proxy,
            geoip=self.geoip,
        )
        browser = await manager.__aenter__()
        return browser, self.context_options(), manager

    async def shutdown(self, browser: Any, extra: Optional[Any]) -> None:
        # менеджер camoufox сам закрывает браузер
        if extra is not None:
            await extra.__aexit__(None, None, None)
        else:
            await browser.close()


@dataclass(slots=True)
class PlaywrightConfig(BaseBrowserConfig):
    engine: BrowserEngine = BrowserEngine.CHROMIUM
    ignore_https_errors: bool = True

    def context_options(self) -> dict:
        options = BaseBrowserConfig.context_options(self)
        options.setdefault("ignore_https_errors", self.ignore_https_errors)
        return options

    async def initialize(
        self, proxy: Optional[dict], debug: bool
    ) -> Tuple[Any, dict, Optional[Any]]:
        from playwright.async_api import async_playwright

        playwright = await async_playwright().start()
        launch_args = {"headless": self.resolve_headless(debug)}
        if proxy:
            launch_args["proxy"] = proxy

        launcher = {
            BrowserEngine.CHROMIUM: playwright.chromium,
            BrowserEngine.FIREFOX: playwright.firefox,
            BrowserEngine.WEBKIT: playwright.webkit,
        }[self.engine]

        browser = await launcher.launch(**launch_args)
        return browser, self.context_options(), playwright

    async def shutdown(self, browser: Any, extra: Optional[Any]) -> None:
        await browser.close()
        if extra is not None:
            await extra.stop()
