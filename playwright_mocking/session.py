import inspect
import urllib.parse
import logging
from beartype import beartype
from beartype.typing import Callable, Union
from .browser_engines import BrowserEngine, BaseBrowserConfig
from .mock import ApiMocker
from .network_interceptor import NetworkInterceptor
from .events import NetworkRecorder
from .tools import parse_proxy, UrlPattern
from . import config as CFG


class MockingSession:
    """
    Браузер + контекст для экспериментов с перехватом сети.
    """

    @beartype
    def __init__(self,
                 engine:             Union[BaseBrowserConfig, BrowserEngine] = BrowserEngine.CHROMIUM,
                 debug:              bool               = False,
                 proxy:              str | None         = None,
                 trust_env:          bool               = False,
                 timeout:            float | int        = CFG.DEFAULT_TIMEOUT,
                 start_func:         Callable | None    = None,
        ) -> None:
        self.engine = engine
        self.debug = debug
        self.proxy = proxy
        self.trust_env = trust_env
        self.timeout = timeout
        self.start_func = start_func

        self._browser = None
        self._bcontext = None
        self._extra = None

        self._logger = logging.getLogger(self.__class__.__name__)
        handler = logging.StreamHandler()
        formatter = logging.Formatter('[%(asctime)s] %(levelname)s %(name)s: %(message)s')
        handler.setFormatter(formatter)
        if not self._logger.hasHandlers():
            self._logger.addHandler(handler)

    async def __aenter__(self) -> "MockingSession":
        await self.new_session()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # Properties для настроек
    @property
    def engine(self) -> BaseBrowserConfig:
        return self._engine

    @engine.setter
    @beartype
    def engine(self, value: Union[BaseBrowserConfig, BrowserEngine]) -> None:
        self._engine = value() if isinstance(value, BrowserEngine) else value

    @property
    def debug(self) -> bool:
        return self._debug

    @debug.setter
    @beartype
    def debug(self, value: bool) -> None:
        self._debug = value

    @property
    def proxy(self) -> str | None:
        return self._proxy

    @proxy.setter
    @beartype
    def proxy(self, value: str | None) -> None:
        self._proxy = value

    @property
    def trust_env(self) -> bool:
        return self._trust_env

    @trust_env.setter
    @beartype
    def trust_env(self, value: bool) -> None:
        self._trust_env = value

    @property
    def timeout(self) -> float:
        return self._timeout

    @timeout.setter
    @beartype
    def timeout(self, value: float | int) -> None:
        if value <= 0:
            raise ValueError(CFG.ERROR_TIMEOUT_POSITIVE)
        if value > CFG.MAX_TIMEOUT_SECONDS:
            raise ValueError(CFG.ERROR_TIMEOUT_TOO_LARGE)
        self._timeout = float(value)

    @property
    def start_func(self) -> Callable | None:
        return self._start_func

    @start_func.setter
    @beartype
    def start_func(self, value: Callable | None) -> None:
        self._start_func = value

    @property
    def browser(self):
        return self._browser

    @property
    def context(self):
        return self._bcontext

    async def get_cookies(self) -> dict:
        """
        Возвращает текущие куки в виде словаря.
        """
        if not self._bcontext:
            return {}

        raw = await self._bcontext.cookies()
        return {
            urllib.parse.unquote(c["name"]): urllib.parse.unquote(c["value"])
            for c in raw
        }

    async def new_page(self):
        """
        Создает новую страницу в текущем контексте браузера (сессия открывается при необходимости).
        :return: Страница Playwright
        """
        if not self._bcontext:
            await self.new_session()

        self._logger.info(CFG.LOG_NEW_PAGE_CREATING)
        page = await self._bcontext.new_page()
        self._logger.info(CFG.LOG_NEW_PAGE_CREATED)
        return page

    def interceptor(self, page) -> NetworkInterceptor:
        return NetworkInterceptor(page, timeout=self.timeout)

    def mocker(self, page) -> ApiMocker:
        return ApiMocker(page)

    def recorder(self, page, pattern: UrlPattern = None) -> NetworkRecorder:
        return NetworkRecorder(page, pattern)

    async def new_session(self) -> None:
        await self.close()

        prox = parse_proxy(self.proxy, self.trust_env, self._logger)
        self._logger.info(f"{CFG.LOG_OPENING_BROWSER}: {CFG.LOG_SYSTEM_PROXY if prox and not self.proxy else prox}")
        self._browser, context_options, self._extra = await self.engine.initialize(prox, self.debug)
        self._bcontext = await self._browser.new_context(**context_options)
        self._bcontext.set_default_timeout(self.timeout * CFG.MILLISECONDS_MULTIPLIER)
        self._logger.info(CFG.LOG_BROWSER_CONTEXT_OPENED)

        if self.start_func:
            name = getattr(self.start_func, "__name__", repr(self.start_func))
            self._logger.info(f"{CFG.LOG_START_FUNC_EXECUTING}: {name}")
            if inspect.iscoroutinefunction(self.start_func):
                await self.start_func(self)
            else:
                self.start_func(self)
            self._logger.info(f"Start function {name} {CFG.LOG_START_FUNC_EXECUTED}")
        self._logger.info(CFG.LOG_NEW_SESSION_CREATED)

    async def close(self) -> None:
        """
        Закрывает контекст и браузер, если они открыты.
        """
        to_close = [name for name in ("bcontext", "browser") if getattr(self, f"_{name}") is not None]
        self._logger.info(f"{CFG.LOG_PREPARING_TO_CLOSE}: {to_close if to_close else 'nothing'}")

        if not to_close:
            self._logger.debug(CFG.LOG_NO_CONNECTIONS)
            return

        for name in to_close:
            attr = getattr(self, f"_{name}")
            self._logger.info(f"{CFG.LOG_CLOSING_CONNECTION} {name} connection...")
            try:
                if name == "browser":
                    await self.engine.shutdown(attr, self._extra)
                    self._extra = None
                elif name == "bcontext":
                    await attr.close()
                else:
                    raise ValueError(f"{CFG.ERROR_UNKNOWN_CONNECTION_TYPE}: {name}")
                self._logger.info(f"The {name} {CFG.LOG_CONNECTION_CLOSED}")
            except Exception as e:
                self._logger.error(f"{CFG.LOG_ERROR_CLOSING} {name}: {e}")
            finally:
                setattr(self, f"_{name}", None)
