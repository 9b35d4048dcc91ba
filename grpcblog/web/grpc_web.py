"""
gRPC-Web adapter for HTTP/1.1 clients, built on sonora's ASGI server.

Responses are framed as grpc-web expects: message frames followed by one
trailer frame carrying `grpc-status` / `grpc-message`. An error raised with
`context.abort` before anything was sent becomes a trailers-only response.
"""

import asyncio
import contextlib
import logging
from urllib.parse import quote

import grpc
from sonora import protocol
from sonora.asgi import grpcASGI

logger = logging.getLogger(__name__)


def _trailer_frame(context, wrap_message) -> bytes:
    trailers = [("grpc-status", str(context.code.value[0]))]
    if context.details:
        trailers.append(("grpc-message", quote(context.details)))
    if context._trailing_metadata:
        trailers.extend(context._trailing_metadata)
    return wrap_message(True, False, protocol.pack_trailers(trailers))


def _response_headers(context) -> list[tuple[bytes, bytes]]:
    return list(context._response_headers) + list(context._initial_metadata or [])


async def _wait_for_disconnect(receive) -> None:
    while (await receive())["type"] != "http.disconnect":
        pass


class GrpcWebApp(grpcASGI):
    """grpcASGI with text trailers, empty-stream support and disconnect handling."""

    async def _do_unary_response(self, rpc_method, receive, send, wrap_message, context, coroutine):
        if coroutine is None:
            await self._do_grpc_error(send, context)
            return

        message = await coroutine
        body = wrap_message(False, False, rpc_method.response_serializer(message))
        body += _trailer_frame(context, wrap_message)

        headers = _response_headers(context)
        headers.append((b"content-length", str(len(body)).encode()))
        await send({"type": "http.response.start", "status": 200, "headers": headers})
        await send({"type": "http.response.body", "body": body, "more_body": False})

    async def _do_streaming_response(self, rpc_method, receive, send, wrap_message, context, coroutine):
        if coroutine is None:
            await self._do_grpc_error(send, context)
            return

        # Pull the first message before committing to a 200 so an early
        # abort still goes out as a trailers-only error.
        try:
            first = await anext(coroutine)
        except StopAsyncIteration:
            first = None

        await send({"type": "http.response.start", "status": 200, "headers": _response_headers(context)})

        pump = asyncio.create_task(
            self._pump_stream(rpc_method, send, wrap_message, context, coroutine, first)
        )
        watcher = asyncio.create_task(_wait_for_disconnect(receive))
        try:
            done, _ = await asyncio.wait({pump, watcher}, return_when=asyncio.FIRST_COMPLETED)
            if pump not in done:
                logger.info("gRPC-Web client disconnected, stopping stream")
                pump.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await pump
                return
            pump.result()
        finally:
            watcher.cancel()
            await coroutine.aclose()

    async def _pump_stream(self, rpc_method, send, wrap_message, context, coroutine, first):
        serialize = rpc_method.response_serializer
        if first is not None:
            await send({
                "type": "http.response.body",
                "body": wrap_message(False, False, serialize(first)),
                "more_body": True,
            })
            try:
                async for message in coroutine:
                    await send({
                        "type": "http.response.body",
                        "body": wrap_message(False, False, serialize(message)),
                        "more_body": True,
                    })
            except grpc.RpcError:
                # aborted mid-stream; code and details are on the context
                pass

        await send({
            "type": "http.response.body",
            "body": _trailer_frame(context, wrap_message),
            "more_body": False,
        })
