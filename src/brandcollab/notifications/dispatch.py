"""Best-effort delivery of notifications outside the request cycle.

Routers hand their ``BackgroundTasks`` to the services, so WhatsApp, push
and email sends run after the response is written. Jobs and the CLI pass
nothing and the send runs in place.
"""

from typing import Any, Awaitable, Callable

from fastapi import BackgroundTasks

from brandcollab.logging_config import get_logger

logger = get_logger(__name__)

Send = Callable[..., Awaitable[Any]]


async def deliver(send: Send, *args, **kwargs) -> None:
    """Run one send. A failure is logged and never reaches the caller."""
    try:
        await send(*args, **kwargs)
    except Exception as e:
        logger.error("notification_failed", send=getattr(send, "__name__", repr(send)), error=str(e))


async def dispatch(background: BackgroundTasks | None, send: Send, *args, **kwargs) -> None:
    if background is not None:
        background.add_task(deliver, send, *args, **kwargs)
        return
    await deliver(send, *args, **kwargs)
