# =============================================================================
# Serverless - Invocation Orchestrator
# =============================================================================
# Wraps a web application so it can be used as a Lambda handler:
#
#     handler = serverless(app, binary=["image/*"])
#
# Per invocation: parse the event, build one ServerlessRequest and one
# ServerlessResponse, call the app, wait for the first completion signal and
# settle exactly once with an InvocationResult or an InvocationError.
# =============================================================================

import asyncio
import dataclasses
import inspect
import logging
from functools import partial
from typing import Any, Callable, Dict, Optional

from serverless_http.config import ServerlessOptions
from serverless_http.errors import FrameworkError, InvocationError
from serverless_http.frameworks import get_framework
from serverless_http.runtime.completion import Completion, CompletionSource
from serverless_http.runtime.envelope import EventDescriptor, EventSource, InvocationResult
from serverless_http.runtime.format_result import format_result
from serverless_http.runtime.parse_event import parse_event
from serverless_http.runtime.request import ServerlessRequest
from serverless_http.runtime.response import ServerlessResponse

logger = logging.getLogger(__name__)

Callback = Callable[[Optional[InvocationError], Optional[Dict[str, Any]]], Any]


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class Serverless:
    """
    Lambda handler around a native, WSGI or ASGI application.

    Three calling conventions are available:
        handler(event, context)                      sync, for the Lambda runtime
        await handler.invoke(event, context)         coroutine
        handler.invoke_with_callback(event, context, callback)

    No timeout is applied; the Lambda deadline is the caller's business.
    """

    def __init__(self, app: Any, options: Optional[ServerlessOptions] = None, **kwargs):
        if options is None:
            options = ServerlessOptions.from_env(**kwargs)
        elif kwargs:
            options = dataclasses.replace(options, **kwargs)
        self.app = app
        self.options = options
        self.framework = get_framework(app, options.framework)

    # -------------------------------------------------------------------------
    # Core
    # -------------------------------------------------------------------------

    async def invoke_descriptor(self, descriptor: EventDescriptor, context: Any = None) -> InvocationResult:
        """
        Run the app for one request.

        Returns:
            The InvocationResult of the finished response

        Raises:
            InvocationError: for any failure of the app or the adapter
        """
        completion = Completion()
        try:
            request = ServerlessRequest(descriptor, context=context, base_path=self.options.base_path)
            response = ServerlessResponse(request, options=self.options)
        except Exception as exc:
            # e.g. isBase64Encoded with a body that is not base64
            raise InvocationError(exc, "parse") from exc

        request.on("error", partial(completion.fail, source=CompletionSource.REQUEST_ERROR))
        response.on("error", partial(completion.fail, source=CompletionSource.RESPONSE_ERROR))
        response.on("finish", partial(completion.settle, response, CompletionSource.FINISH))

        def done(error: Optional[BaseException] = None) -> None:
            if error is not None:
                completion.fail(error, CompletionSource.CALLBACK)
            else:
                completion.settle(response, CompletionSource.CALLBACK)

        try:
            if self.options.request:
                await _maybe_await(self.options.request(request, descriptor.raw_event, context))
            returned = self.framework(request, response, done)
        except Exception as exc:
            completion.fail(exc, CompletionSource.RAISE)
        else:
            if inspect.isawaitable(returned):
                task = asyncio.ensure_future(returned)
                task.add_done_callback(partial(self._on_returned, completion, response))

        try:
            await completion.wait()
        except Exception as exc:
            raise InvocationError(exc, completion.source) from exc

        try:
            if not response.finished:
                # The app said it was done without calling end()
                response.end()
            result = response.to_result()
        except Exception as exc:
            raise InvocationError(exc, "finalize") from exc

        if self.options.response:
            try:
                replaced = await _maybe_await(self.options.response(result, descriptor.raw_event, context))
            except Exception as exc:
                raise InvocationError(exc, "response_hook") from exc
            if replaced is not None:
                result = replaced

        logger.info(
            f"Completed {descriptor.method} {descriptor.path} "
            f"status={result.status_code} via={completion.source}"
        )
        return result

    @staticmethod
    def _on_returned(completion: Completion, response: ServerlessResponse, task: asyncio.Future) -> None:
        if task.cancelled():
            completion.fail(FrameworkError("handler task cancelled"), CompletionSource.RETURN)
        elif task.exception() is not None:
            completion.fail(task.exception(), CompletionSource.RAISE)
        else:
            completion.settle(response, CompletionSource.RETURN)

    # -------------------------------------------------------------------------
    # Calling conventions
    # -------------------------------------------------------------------------

    async def invoke(self, event: Any, context: Any = None) -> Dict[str, Any]:
        """Parse `event`, run the app and format the result for the event's source."""
        try:
            descriptor = parse_event(event)
        except Exception as exc:
            raise InvocationError(exc, "parse") from exc

        logger.info(f"Invoking {descriptor.method} {descriptor.path} source={descriptor.source.value}")
        result = await self.invoke_descriptor(descriptor, context)
        return format_result(result, descriptor)

    def _run(self, event: Any, context: Any) -> Dict[str, Any]:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(self.invoke(event, context))
        raise FrameworkError("Event loop already running, use 'await handler.invoke(event, context)'")

    def invoke_with_callback(self, event: Any, context: Any, callback: Callback) -> None:
        """
        Run the invocation and report it as callback(error, result), exactly once.

        Called from inside a running event loop, the error is an
        InvocationError with source "loop".
        """
        try:
            response = self._run(event, context)
        except InvocationError as exc:
            callback(exc, None)
            return
        except FrameworkError as exc:
            callback(InvocationError(exc, "loop"), None)
            return
        callback(None, response)

    def __call__(self, event: Any, context: Any = None) -> Dict[str, Any]:
        """
        Lambda entry point.

        An InvocationError is logged and answered with a 500 response so the
        runtime never sees a raw exception.

        Raises:
            FrameworkError: if called from inside a running event loop;
                use `await handler.invoke(event, context)` there
        """
        try:
            return self._run(event, context)
        except InvocationError as exc:
            logger.exception(f"Handler error: {exc}")
            return self._error_response(event, exc, context)

    @staticmethod
    def _error_response(event: Any, exc: InvocationError, context: Any) -> Dict[str, Any]:
        try:
            descriptor = parse_event(event)
        except Exception:
            descriptor = EventDescriptor(source=EventSource.API_GATEWAY_V1)
        request_id = getattr(context, "aws_request_id", None)
        return format_result(exc.to_result(request_id), descriptor)


def serverless(app: Any, options: Optional[ServerlessOptions] = None, **kwargs) -> Serverless:
    """
    Wrap `app` as a Lambda handler.

    Args:
        app: Native (request, response) handler, WSGI app or ASGI app
        options: Prepared ServerlessOptions (optional)
        **kwargs: Option overrides (binary, framework, base_path, request, response)

    Returns:
        Serverless handler
    """
    return Serverless(app, options, **kwargs)
