import logging
from pathlib import Path
from beartype import beartype
from beartype.typing import Union, Optional
from .tools import UrlPattern, describe_pattern
from . import config as CFG


_logger = logging.getLogger("HarReplay")

NOT_FOUND_MODES = ("abort", "fallback")


@beartype
async def replay_from_har(
    page,
    har_path: Union[str, Path],
    url: UrlPattern = None,
    update: bool = False,
    not_found: str = "abort",
    update_content: Optional[str] = None,
) -> Path:
    """
    Отдаёт ответы из HAR-файла вместо сети (или записывает его при update=True).

    В режиме записи файл пишется Playwright при закрытии контекста.
    """
    if not_found not in NOT_FOUND_MODES:
        raise ValueError(f"not_found must be one of {NOT_FOUND_MODES}, got {not_found!r}")
    if update_content not in (None, "embed", "attach"):
        raise ValueError(f"update_content must be 'embed' or 'attach', got {update_content!r}")

    path = Path(har_path)
    if not update and not path.is_file():
        raise FileNotFoundError(f"{CFG.ERROR_HAR_NOT_FOUND}: {path}")

    kwargs = {"url": url, "not_found": not_found, "update": update}
    if update_content is not None:
        kwargs["update_content"] = update_content

    mode = CFG.LOG_HAR_RECORD if update else CFG.LOG_HAR_REPLAY
    _logger.info(f"{mode}: {path} ({describe_pattern(url)})")
    await page.route_from_har(path, **kwargs)
    return path
