import itertools
import urllib.parse
from dataclasses import dataclass, field
from beartype import beartype
from beartype.typing import Optional, List
from .models import ExpectedContentType, HttpMethod, Response
from .execute import Execute
from .content_loader import parse_content_type
from .tools import UrlPattern, url_matches, describe_pattern
from . import config as CFG


_slug_counter = itertools.count(1)


@beartype
def content_type_matches(expected: Optional[ExpectedContentType], content_type: str) -> bool:
    """Подходит ли реальный content-type под ожидаемый тип"""
    if expected is None:
        return False
    if expected is ExpectedContentType.ANY:
        return True

    ctype = parse_content_type(content_type)['content_type']
    if expected is ExpectedContentType.JSON:
        return ctype in CFG.JSON_EXTENSIONS or ctype.endswith('+json')
    if expected is ExpectedContentType.JS:
        return CFG.CONTENT_TYPE_JAVASCRIPT in ctype or 'ecmascript' in ctype
    if expected is ExpectedContentType.CSS:
        return ctype == CFG.CONTENT_TYPE_CSS
    if expected is ExpectedContentType.HTML:
        return ctype == CFG.CONTENT_TYPE_HTML
    if expected is ExpectedContentType.IMAGE:
        return ctype.startswith(CFG.CONTENT_TYPE_IMAGE)
    if expected is ExpectedContentType.VIDEO:
        return ctype.startswith('video/')
    if expected is ExpectedContentType.AUDIO:
        return ctype.startswith('audio/')
    if expected is ExpectedContentType.FONT:
        return ctype.startswith('font/') or ctype in CFG.FONT_EXTENSIONS
    if expected is ExpectedContentType.APPLICATION:
        return ctype in CFG.APPLICATION_EXTENSIONS
    if expected is ExpectedContentType.ARCHIVE:
        return ctype in CFG.ARCHIVE_EXTENSIONS
    if expected is ExpectedContentType.TEXT:
        return ctype.startswith('text/')
    return False


class Handler:
    """
    Описание того, какие запросы перехватывать и что с ними делать.

    Совпадение по URL: `startswith_url` (префикс) и/или `pattern` (glob, regex или предикат).
    Совпадение по методу: `method`, HttpMethod.ANY - любой.
    Совпадение по содержимому проверяется только для уже полученных ответов.
    """

    @beartype
    def __init__(
        self,
        expected_content: Optional[ExpectedContentType] = ExpectedContentType.ANY,
        startswith_url: Optional[str] = None,
        pattern: UrlPattern = None,
        method: HttpMethod = HttpMethod.ANY,
        execute: Optional[Execute] = None,
        slug: Optional[str] = None,
        main: bool = False,
    ):
        self.expected_content = expected_content
        self.startswith_url = startswith_url
        self.pattern = pattern
        self.method = method
        self.execute = execute if execute is not None else Execute.RETURN()
        self.main = main
        self.slug = slug or f"{self.handler_type}_{next(_slug_counter)}"

    @property
    def handler_type(self) -> str:
        if self.main:
            return "main"
        if self.expected_content is None:
            return "none"
        return self.expected_content.name.lower()

    @property
    def max_responses(self) -> Optional[int]:
        return self.execute.max_responses

    @property
    def max_modifications(self) -> Optional[int]:
        return self.execute.max_modifications

    # Convenient constructors
    @classmethod
    def MAIN(cls, method: HttpMethod = HttpMethod.GET, execute: Optional[Execute] = None, slug: Optional[str] = None) -> "Handler":
        """Основной документ страницы, на которую выполняется переход"""
        return cls(ExpectedContentType.ANY, method=method, execute=execute, slug=slug, main=True)

    @classmethod
    def _typed(cls, expected, startswith_url, pattern, method, execute, slug) -> "Handler":
        return cls(expected, startswith_url=startswith_url, pattern=pattern, method=method, execute=execute, slug=slug)

    @classmethod
    def JSON(cls, startswith_url=None, pattern=None, method=HttpMethod.ANY, execute=None, slug=None) -> "Handler":
        return cls._typed(ExpectedContentType.JSON, startswith_url, pattern, method, execute, slug)

    @classmethod
    def JS(cls, startswith_url=None, pattern=None, method=HttpMethod.ANY, execute=None, slug=None) -> "Handler":
        return cls._typed(ExpectedContentType.JS, startswith_url, pattern, method, execute, slug)

    @classmethod
    def CSS(cls, startswith_url=None, pattern=None, method=HttpMethod.ANY, execute=None, slug=None) -> "Handler":
        return cls._typed(ExpectedContentType.CSS, startswith_url, pattern, method, execute, slug)

    @classmethod
    def HTML(cls, startswith_url=None, pattern=None, method=HttpMethod.ANY, execute=None, slug=None) -> "Handler":
        return cls._typed(ExpectedContentType.HTML, startswith_url, pattern, method, execute, slug)

    @classmethod
    def IMAGE(cls, startswith_url=None, pattern=None, method=HttpMethod.ANY, execute=None, slug=None) -> "Handler":
        return cls._typed(ExpectedContentType.IMAGE, startswith_url, pattern, method, execute, slug)

    @classmethod
    def VIDEO(cls, startswith_url=None, pattern=None, method=HttpMethod.ANY, execute=None, slug=None) -> "Handler":
        return cls._typed(ExpectedContentType.VIDEO, startswith_url, pattern, method, execute, slug)

    @classmethod
    def AUDIO(cls, startswith_url=None, pattern=None, method=HttpMethod.ANY, execute=None, slug=None) -> "Handler":
        return cls._typed(ExpectedContentType.AUDIO, startswith_url, pattern, method, execute, slug)

    @classmethod
    def FONT(cls, startswith_url=None, pattern=None, method=HttpMethod.ANY, execute=None, slug=None) -> "Handler":
        return cls._typed(ExpectedContentType.FONT, startswith_url, pattern, method, execute, slug)

    @classmethod
    def APPLICATION(cls, startswith_url=None, pattern=None, method=HttpMethod.ANY, execute=None, slug=None) -> "Handler":
        return cls._typed(ExpectedContentType.APPLICATION, startswith_url, pattern, method, execute, slug)

    @classmethod
    def ARCHIVE(cls, startswith_url=None, pattern=None, method=HttpMethod.ANY, execute=None, slug=None) -> "Handler":
        return cls._typed(ExpectedContentType.ARCHIVE, startswith_url, pattern, method, execute, slug)

    @classmethod
    def TEXT(cls, startswith_url=None, pattern=None, method=HttpMethod.ANY, execute=None, slug=None) -> "Handler":
        return cls._typed(ExpectedContentType.TEXT, startswith_url, pattern, method, execute, slug)

    @classmethod
    def ANY(cls, startswith_url=None, pattern=None, method=HttpMethod.ANY, execute=None, slug=None) -> "Handler":
        return cls._typed(ExpectedContentType.ANY, startswith_url, pattern, method, execute, slug)

    @classmethod
    def ALL(cls, startswith_url=None, pattern=None, method=HttpMethod.ANY, execute=None, slug=None) -> "Handler":
        """Все запросы; обычно вместе с Execute.MODIFY/ALL/MOCK/ABORT"""
        return cls._typed(ExpectedContentType.ANY, startswith_url, pattern, method, execute, slug)

    @classmethod
    def NONE(cls, slug=None) -> "Handler":
        """Никогда ничего не захватывает - удобно для сбора отклонённых ответов"""
        return cls(None, slug=slug)

    @beartype
    def should_intercept(self, url: str, method: str, base_url: Optional[str] = None) -> bool:
        """Проверка по URL и методу - до того, как запрос ушёл в сеть"""
        if not self.method.matches(method):
            return False

        full_url = urllib.parse.unquote(url)
        if self.main and base_url is not None and not full_url.startswith(base_url):
            return False
        if self.startswith_url and not full_url.startswith(self.startswith_url):
            return False
        return url_matches(self.pattern, url)

    @beartype
    def should_capture(self, url: str, method: str, content_type: str, base_url: Optional[str] = None) -> bool:
        """Определяет, должен ли handler захватить полученный ответ"""
        if not self.should_intercept(url, method, base_url):
            return False
        if self.main:
            ctype = content_type.lower()
            return (
                CFG.CONTENT_TYPE_JSON in ctype
                or CFG.CONTENT_TYPE_HTML in ctype
                or CFG.CONTENT_TYPE_IMAGE in ctype
            )
        return content_type_matches(self.expected_content, content_type)

    def __repr__(self) -> str:
        target = self.startswith_url or describe_pattern(self.pattern)
        return f"Handler(slug='{self.slug}', type={self.handler_type}, url='{target}', method={self.method.name}, action={self.execute.action.name})"


@beartype
@dataclass
class HandlerSearchSuccess:
    """Handler получил хотя бы один ответ"""

    responses: List[Response]
    duration: float
    handler_slug: str

    def __repr__(self) -> str:
        return f"HandlerSearchSuccess(slug='{self.handler_slug}', responses={len(self.responses)}, duration={self.duration:.3f}s)"


@beartype
@dataclass
class HandlerSearchFailed:
    """Handler не дождался ни одного подходящего ответа"""

    rejected_responses: List[Response] = field(default_factory=list)
    duration: float = 0.0
    handler_slug: str = ""

    def __repr__(self) -> str:
        return f"HandlerSearchFailed(slug='{self.handler_slug}', rejected={len(self.rejected_responses)}, duration={self.duration:.3f}s)"
