import os
import re
import inspect
import logging
from functools import lru_cache
from beartype import beartype
from beartype.typing import Union, Optional, Callable, Any
from . import config as CFG


UrlPattern = Union[str, re.Pattern, Callable[[str], bool], None]

_REGEX_SPECIAL = set('$^+.*()|\\?{}[]/')


@lru_cache(maxsize=256)
@beartype
def glob_to_regex(pattern: str) -> str:
    """
    Переводит glob-паттерн Playwright в регулярное выражение.

    `*` - любые символы кроме `/`, `**` между слэшами - любое количество сегментов,
    `{a,b}` - альтернатива, `\\` экранирует следующий символ, остальное литерально.
    """
    tokens = ['^']
    in_group = False
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == '\\' and i + 1 < len(pattern):
            i += 1
            tokens.append(re.escape(pattern[i]))
        elif char == '*':
            before = pattern[i - 1] if i > 0 else None
            stars = 1
            while i + 1 < len(pattern) and pattern[i + 1] == '*':
                stars += 1
                i += 1
            after = pattern[i + 1] if i + 1 < len(pattern) else None
            if stars > 1 and before in ('/', None) and after in ('/', None):
                tokens.append(r'((?:[^/]*(?:/|$))*)')
                i += 1  # слэш после ** уже учтён
            else:
                tokens.append(r'([^/]*)')
        elif char == '{':
            in_group = True
            tokens.append('(')
        elif char == '}':
            in_group = False
            tokens.append(')')
        elif char == ',' and in_group:
            tokens.append('|')
        elif char in _REGEX_SPECIAL:
            tokens.append('\\' + char)
        else:
            tokens.append(char)
        i += 1
    tokens.append('$')
    return ''.join(tokens)


@beartype
def url_matches(pattern: UrlPattern, url: str) -> bool:
    """Проверяет URL на соответствие glob-строке, регулярному выражению или предикату"""
    if pattern is None:
        return True
    if isinstance(pattern, str):
        return re.match(glob_to_regex(pattern), url) is not None
    if isinstance(pattern, re.Pattern):
        return pattern.search(url) is not None
    return bool(pattern(url))


@beartype
def describe_pattern(pattern: UrlPattern) -> str:
    if pattern is None:
        return CFG.CATCH_ALL_PATTERN
    if isinstance(pattern, str):
        return pattern
    if isinstance(pattern, re.Pattern):
        return f"re:{pattern.pattern}"
    return getattr(pattern, "__name__", repr(pattern))


@beartype
def parse_proxy(proxy: Optional[str], trust_env: bool, logger: logging.Logger) -> Optional[dict]:
    """
    Превращает строку прокси в словарь для Playwright.

    Без явного прокси и с trust_env=True берёт HTTPS_PROXY/HTTP_PROXY из окружения.
    """
    if not proxy and trust_env:
        for name in ("HTTPS_PROXY", "https_proxy", "HTTP_PROXY", "http_proxy"):
            if os.environ.get(name):
                proxy = os.environ[name]
                logger.debug(f"Proxy taken from environment variable {name}")
                break

    if not proxy:
        return None

    match = re.match(CFG.PROXY, proxy)
    if not match:
        raise ValueError(f"Invalid proxy format: {proxy}")

    scheme = match.group("scheme") or CFG.DEFAULT_HTTP_SCHEME
    server = f"{scheme}{match.group('host')}"
    if match.group("port"):
        server += f":{match.group('port')}"

    result = {"server": server}
    if match.group("username"):
        result["username"] = match.group("username")
        result["password"] = match.group("password")
    return result


async def call_maybe_async(func: Callable, *args) -> Any:
    """Вызывает синхронный или асинхронный колбэк одинаково"""
    result = func(*args)
    if inspect.isawaitable(result):
        result = await result
    return result
