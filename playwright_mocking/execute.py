from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Optional

from beartype import beartype

from . import config as CFG


class ExecuteAction(Enum):
    """Actions available for Handler execution."""

    RETURN = auto()  # collect responses
    MODIFY = auto()  # rewrite requests and/or responses
    ALL = auto()     # rewrite and collect
    MOCK = auto()    # fulfil without touching the network
    ABORT = auto()   # fail the request


@beartype
@dataclass(frozen=True)
class Execute:
    """Configuration for Handler behaviour."""

    action: ExecuteAction
    request_modify: Optional[Callable] = None
    response_modify: Optional[Callable] = None
    mock: Optional[object] = None
    error_code: str = CFG.DEFAULT_ABORT_ERROR
    max_responses: Optional[int] = None
    max_modifications: Optional[int] = None

    def __post_init__(self) -> None:
        has_modifier = self.request_modify is not None or self.response_modify is not None

        if self.action == ExecuteAction.RETURN:
            if has_modifier:
                raise ValueError("RETURN action should not have response_modify or request_modify")
        elif self.action in (ExecuteAction.MODIFY, ExecuteAction.ALL):
            if not has_modifier:
                raise ValueError(f"{self.action.name} action requires at least one of response_modify or request_modify")
            if self.max_modifications is None:
                raise ValueError(f"{self.action.name} action requires max_modifications")
            if self.action == ExecuteAction.ALL and self.max_responses is None:
                raise ValueError("ALL action requires max_responses")
        elif self.action == ExecuteAction.MOCK:
            if self.mock is None:
                raise ValueError("MOCK action requires a mock response")
            if has_modifier:
                raise ValueError("MOCK action should not have response_modify or request_modify")
        elif self.action == ExecuteAction.ABORT:
            if has_modifier or self.mock is not None:
                raise ValueError("ABORT action accepts only error_code")
            if self.error_code not in CFG.ABORT_ERROR_CODES:
                raise ValueError(f"{CFG.ERROR_ABORT_CODE}: {self.error_code}")

        for name in ("max_responses", "max_modifications"):
            value = getattr(self, name)
            if value is not None and value < 1:
                raise ValueError(f"{name} must be positive or None")

    @property
    def collects(self) -> bool:
        """Собирает ли handler ответы в результат"""
        return self.action in (ExecuteAction.RETURN, ExecuteAction.ALL)

    @property
    def modifies(self) -> bool:
        return self.action in (ExecuteAction.MODIFY, ExecuteAction.ALL)

    # Convenient constructors
    @classmethod
    def RETURN(cls, max_responses: Optional[int] = 1) -> "Execute":
        return cls(action=ExecuteAction.RETURN, max_responses=max_responses)

    @classmethod
    def MODIFY(
        cls,
        request_modify: Optional[Callable] = None,
        response_modify: Optional[Callable] = None,
        max_modifications: Optional[int] = 1,
    ) -> "Execute":
        return cls(
            action=ExecuteAction.MODIFY,
            request_modify=request_modify,
            response_modify=response_modify,
            max_modifications=max_modifications,
        )

    @classmethod
    def ALL(
        cls,
        request_modify: Optional[Callable] = None,
        response_modify: Optional[Callable] = None,
        max_modifications: Optional[int] = 1,
        max_responses: Optional[int] = 1,
    ) -> "Execute":
        return cls(
            action=ExecuteAction.ALL,
            request_modify=request_modify,
            response_modify=response_modify,
            max_modifications=max_modifications,
            max_responses=max_responses,
        )

    @classmethod
    def MOCK(cls, mock: object, max_modifications: Optional[int] = None) -> "Execute":
        """max_modifications здесь ограничивает число подменённых ответов"""
        return cls(action=ExecuteAction.MOCK, mock=mock, max_modifications=max_modifications)

    @classmethod
    def ABORT(cls, error_code: str = CFG.DEFAULT_ABORT_ERROR, max_modifications: Optional[int] = None) -> "Execute":
        return cls(action=ExecuteAction.ABORT, error_code=error_code, max_modifications=max_modifications)
