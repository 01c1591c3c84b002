import json
from io import BytesIO
from beartype import beartype
from beartype.typing import Union, Tuple, Optional
from . import config as CFG


@beartype
def _strip_json_prefix(text: str) -> str:
    """
    Удаляет защитные префиксы перед JSON (")]}'", "while(1);", "for(;;);" и т.п.).

    Ищем первый валидный JSON объект/массив в строке, всё перед ним отбрасываем.
    """
    text = text.lstrip()

    for i, char in enumerate(text):
        if char not in '{[':
            continue

        stack = []
        in_string = False
        escaped = False

        for j in range(i, len(text)):
            current = text[j]

            if escaped:
                escaped = False
                continue
            if current == '\\':
                escaped = True
                continue
            if current == '"':
                in_string = not in_string
                continue
            if in_string:
                continue

            if current in '{[':
                stack.append(current)
            elif current in '}]':
                expected = '{' if current == '}' else '['
                if not stack or stack[-1] != expected:
                    break
                stack.pop()
                if not stack:
                    candidate = text[i:j + 1]
                    try:
                        json.loads(candidate)
                        return candidate
                    except json.JSONDecodeError:
                        break

    # Валидный JSON не нашли - возвращаем как есть
    return text


@beartype
def parse_content_type(content_type: Optional[str]) -> dict[str, str]:
    """
    Парсит строку Content-Type и возвращает словарь с основным типом и параметрами.

    Args:
        content_type: Content-Type из заголовков ответа (например, "text/html; charset=utf-8")

    Returns:
        Словарь с ключом 'content_type' для основного типа и всеми дополнительными параметрами
    """
    if not content_type:
        return {'content_type': '', 'charset': CFG.DEFAULT_CHARSET}

    parts = [p.strip() for p in content_type.split(';')]

    result = {
        'content_type': parts[0].lower(),
        'charset': CFG.DEFAULT_CHARSET,
    }

    for part in parts[1:]:
        if not part:
            continue

        if '=' in part:
            key, value = part.split('=', 1)
            key = key.strip().lower()
            value = value.strip().strip('"\'')
            if key == 'charset':
                value = value.lower()
            result[key] = value
        else:
            result[part.lower()] = ''

    return result


@beartype
def parse_response_data(data: Union[str, bytes], content_type: Optional[str]) -> Union[dict, list, str, BytesIO]:
    """
    Парсит данные ответа на основе content-type.

    Args:
        data: Сырые данные как строка или байты
        content_type: Content-Type из заголовков ответа

    Returns:
        dict/list для JSON, BytesIO для бинарных типов, str для всего остального
    """
    pct = parse_content_type(content_type)
    charset = pct['charset']

    if pct['content_type'] in CFG.JSON_EXTENSIONS:
        text_data = data.decode(charset, errors='replace') if isinstance(data, bytes) else data
        try:
            return json.loads(_strip_json_prefix(text_data))
        except json.JSONDecodeError:
            return text_data

    for types in (
        CFG.IMAGE_EXTENSIONS,
        CFG.VIDEO_EXTENSIONS,
        CFG.AUDIO_EXTENSIONS,
        CFG.FONT_EXTENSIONS,
        CFG.APPLICATION_EXTENSIONS,
        CFG.ARCHIVE_EXTENSIONS,
    ):
        if pct['content_type'] in types:
            parsed_data = BytesIO(data if isinstance(data, bytes) else data.encode(charset))
            parsed_data.name = f"file{types[pct['content_type']]}"
            return parsed_data

    if isinstance(data, bytes):
        try:
            return data.decode(charset)
        except (UnicodeDecodeError, LookupError):
            return BytesIO(data)
    return data


@beartype
def encode_body(body: Union[dict, list, str, bytes, None]) -> Tuple[bytes, Optional[str]]:
    """Готовит тело для route.fulfill(): возвращает (байты, content-type)"""
    if body is None:
        return b"", None
    if isinstance(body, (dict, list)):
        return json.dumps(body).encode(CFG.DEFAULT_CHARSET), CFG.CONTENT_TYPE_JSON
    if isinstance(body, str):
        return body.encode(CFG.DEFAULT_CHARSET), CFG.CONTENT_TYPE_TEXT
    return body, CFG.CONTENT_TYPE_BINARY
