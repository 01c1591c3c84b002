import json
import urllib.parse
from enum import Enum, auto
from io import BytesIO
from dataclasses import dataclass
from beartype import beartype
from beartype.typing import Union, Optional, Dict
from .content_loader import parse_content_type, parse_response_data, _strip_json_prefix
from . import config as CFG


# Заголовки, которые теряют смысл после подмены тела ответа
_HOP_HEADERS = ('content-length', 'content-encoding', 'transfer-encoding')


class ExpectedContentType(Enum):
    JSON = auto()
    JS = auto()
    CSS = auto()
    HTML = auto()
    IMAGE = auto()
    VIDEO = auto()
    AUDIO = auto()
    FONT = auto()
    APPLICATION = auto()
    ARCHIVE = auto()
    TEXT = auto()
    ANY = auto()


class HttpMethod(Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"
    ANY = None  # Специальный метод для захвата любых запросов

    def matches(self, method: str) -> bool:
        return self is HttpMethod.ANY or self.value == method.upper()


@beartype
@dataclass(frozen=False)
class Response:
    """Класс для представления ответа (реального или подменённого)"""

    status: int
    request_headers: dict
    response_headers: dict
    content: bytes = b""
    duration: float = 0.0
    url: Optional[str] = None

    @property
    def content_type(self) -> str:
        # Ищем content-type независимо от регистра
        for key, value in self.response_headers.items():
            if key.lower() == 'content-type':
                return value
        return ''

    def content_parse(self) -> Union[dict, list, str, BytesIO]:
        """Парсит содержимое ответа в Python-подобный формат"""
        if not self.content:
            return ""
        return parse_response_data(self.content, self.content_type)

    def json(self) -> Union[dict, list]:
        charset = parse_content_type(self.content_type)['charset']
        return json.loads(_strip_json_prefix(self.content.decode(charset, errors='replace')))

    def set_json(self, data: Union[dict, list]) -> None:
        """Заменяет тело ответа на JSON и выставляет content-type"""
        self.content = json.dumps(data).encode(CFG.DEFAULT_CHARSET)
        for key in [k for k in self.response_headers if k.lower() == 'content-type']:
            del self.response_headers[key]
        self.response_headers['content-type'] = CFG.CONTENT_TYPE_JSON

    def to_fulfill_kwargs(self) -> dict:
        """Аргументы для route.fulfill()"""
        headers = {
            key: value for key, value in self.response_headers.items()
            if key.lower() not in _HOP_HEADERS
        }
        return {"status": self.status, "headers": headers, "body": self.content}

    def __str__(self) -> str:
        type_data = parse_content_type(self.content_type or CFG.UNKNOWN_HEADER_TYPE)
        content_size = f"{len(self.content)} bytes"
        url_info = f", url='{self.url}'" if self.url else ""
        return f"Response(status={self.status}, content_type='{type_data['content_type']}', size={content_size}, duration={self.duration:.3f}s{url_info})"

    def __repr__(self) -> str:
        url_info = f", url='{self.url}'" if self.url else ""
        return f"Response(status={self.status}, headers={len(self.response_headers)}, content_size={len(self.content)}, duration={self.duration}{url_info})"


@beartype
@dataclass(frozen=False)
class Request:
    """Класс для представления HTTP запроса с возможностью модификации"""

    url: str
    headers: Optional[Dict[str, str]] = None
    params: Optional[Dict[str, str]] = None
    body: Optional[Union[dict, list, str]] = None
    method: HttpMethod = HttpMethod.GET

    def __post_init__(self):
        if self.headers is None:
            self.headers = {}
        if self.params is None:
            self.params = {}

        # Параметры из URL объединяем с переданными, переданные главнее
        existing_params = dict(urllib.parse.parse_qsl(urllib.parse.urlparse(self.url).query, keep_blank_values=True))
        # Снимок параметров URL: пока params с ним совпадают, строка запроса не пересобирается
        self._url_params = dict(existing_params)
        if existing_params:
            existing_params.update(self.params)
            self.params = existing_params

    @classmethod
    def from_playwright(cls, request) -> "Request":
        """Создаёт Request из playwright-объекта запроса"""
        try:
            method = HttpMethod(request.method.upper())
        except ValueError:
            # Нестандартный метод (PROPFIND, ...): без переопределения в сеть уйдёт исходный
            method = HttpMethod.ANY
        try:
            body = request.post_data
        except UnicodeDecodeError:
            # Бинарное тело не редактируется, route.fetch() отправит его как есть
            body = None
        return cls(
            url=request.url,
            headers=dict(request.headers),
            body=body,
            method=method,
        )

    @property
    def base_url(self) -> str:
        """Возвращает базовый URL без параметров"""
        parsed = urllib.parse.urlparse(self.url)
        return urllib.parse.urlunparse(parsed._replace(query=''))

    @property
    def real_url(self) -> str:
        """Собирает и возвращает финальный URL с параметрами"""
        if self.params == self._url_params:
            return self.url
        if not self.params:
            return self.base_url

        # Нетронутые пары (пустые значения, повторы ключей) сохраняем как были
        parsed = urllib.parse.urlparse(self.url)
        pairs = [
            (key, value)
            for key, value in urllib.parse.parse_qsl(parsed.query, keep_blank_values=True)
            if key in self.params and self.params[key] == self._url_params.get(key)
        ]
        kept = {key for key, _ in pairs}
        pairs += [(key, value) for key, value in self.params.items() if key not in kept]
        return urllib.parse.urlunparse(parsed._replace(query=urllib.parse.urlencode(pairs)))

    @property
    def post_data(self) -> Optional[str]:
        if self.body is None:
            return None
        if isinstance(self.body, str):
            return self.body
        return json.dumps(self.body)

    def add_header(self, name: str, value: str) -> None:
        self.headers[name] = value

    def remove_header(self, name: str) -> None:
        for key in [k for k in self.headers if k.lower() == name.lower()]:
            del self.headers[key]

    def add_param(self, name: str, value: str) -> None:
        self.params[name] = value

    def remove_param(self, name: str) -> None:
        self.params.pop(name, None)

    def __str__(self) -> str:
        method = self.method.value or "ANY"
        return f"Request(method={method}, url='{self.real_url}', headers={len(self.headers)}, params={len(self.params)}, body={'set' if self.body is not None else 'none'})"

    def __repr__(self) -> str:
        return f"Request(method={self.method.value}, url='{self.url}', headers={self.headers}, params={self.params}, body={self.body})"
