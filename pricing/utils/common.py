import asyncio
import inspect
import traceback
from collections.abc import Callable
from types import TracebackType
from typing import Any, Literal, overload

from aiohttp import ClientResponse, ClientSession, ClientTimeout

from pricing.logging import Logger, get_exception_message, log_errors


@overload
async def send_request(method: str, url: str, *args: Any, return_json: Literal[True] = True, **kwargs: Any) -> Any: ...
@overload
async def send_request(
    method: str, url: str, *args: Any, return_json: Literal[False], **kwargs: Any
) -> tuple[ClientResponse, str]: ...
@overload
async def send_request(
    method: str, url: str, *args: Any, return_json: bool, **kwargs: Any
) -> Any | tuple[ClientResponse, str]: ...
async def send_request(
    method: str, url: str, *args: Any, return_json: bool = True, timeout: float | None = None, **kwargs: Any
) -> Any:
    client_timeout = ClientTimeout(total=timeout) if timeout is not None else None
    async with ClientSession(timeout=client_timeout) as session, session.request(method, url, *args, **kwargs) as resp:
        if return_json:
            return await resp.json()
        return resp, await resp.text()


async def run_universal(func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):  # pragma: no cover
        result = await result
    return result


async def run_repeated(
    func: Callable[..., Any], interval: int, initial_delay: int | None = None, *, logger: Logger | None = None
) -> None:  # pragma: no cover
    if initial_delay is None:
        initial_delay = interval
    first_iter = True
    while True:
        await asyncio.sleep(initial_delay if first_iter else interval)
        if logger is None:
            await run_universal(func)
        else:
            with log_errors(logger):
                await run_universal(func)
        first_iter = False


def excepthook_handler(
    logger: Logger, excepthook: Callable[[type[BaseException], BaseException, TracebackType | None], Any]
) -> Callable[[type[BaseException], BaseException, TracebackType | None], Any]:
    def internal_error_handler(type_: type[BaseException], value: BaseException, tb: TracebackType | None) -> Any:
        if type_ is not KeyboardInterrupt:
            logger.error("\n" + "".join(traceback.format_exception(type_, value, tb)))
        return excepthook(type_, value, tb)

    return internal_error_handler


def handle_event_loop_exception(logger: Logger, loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
    if "exception" in context:
        msg = get_exception_message(context["exception"])
    else:
        msg = context["message"]
    logger.error(msg)
