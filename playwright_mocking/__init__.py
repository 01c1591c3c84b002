"""
Network interception toolkit and guide for Playwright.

Route interception, response mocking, request continuation, network event
subscription and response waiting.
"""

from .models import HttpMethod, ExpectedContentType, Response, Request
from .execute import Execute, ExecuteAction
from .handler import (
    Handler,
    HandlerSearchSuccess,
    HandlerSearchFailed,
)
from .exceptions import (
    InterceptionError,
    MockConfigurationError,
    ResponseWaitTimeout,
    NetworkError,
)
from .content_loader import parse_content_type, parse_response_data
from .tools import url_matches, glob_to_regex
from .mock import MockResponse, ApiMocker
from .network_interceptor import NetworkInterceptor
from .events import NetworkRecorder, RecordedExchange
from .waiting import wait_for_response, wait_for_request, collect_responses
from .har import replay_from_har
from .browser_engines import BrowserEngine
from .session import MockingSession

__version__ = "0.1.0"

__all__ = [
    "NetworkInterceptor",
    "ApiMocker",
    "MockResponse",
    "NetworkRecorder",
    "RecordedExchange",
    "MockingSession",
    "BrowserEngine",
    "Handler",
    "ExpectedContentType",
    "HandlerSearchSuccess",
    "HandlerSearchFailed",
    "Request",
    "Response",
    "HttpMethod",
    "Execute",
    "ExecuteAction",
    "InterceptionError",
    "MockConfigurationError",
    "ResponseWaitTimeout",
    "NetworkError",
    "parse_content_type",
    "parse_response_data",
    "url_matches",
    "glob_to_regex",
    "wait_for_response",
    "wait_for_request",
    "collect_responses",
    "replay_from_har",
]
