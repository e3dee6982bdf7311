"""Serverless entry point.

AWS Lambda and Vercel invoke :data:`handler` per request instead of running
a listener. Lifespan events are off so a failing cold start never crashes
the function; startup checks already ran inside ``create_app``.
"""

import asyncio
from typing import Final

from mangum import Mangum
from starlette.types import Receive, Scope, Send

from .main import app


async def supervised_app(scope: Scope, receive: Receive, send: Send) -> None:
    """ASGI app with the process supervisor attached to the running loop.

    Without a lifespan the loop handler cannot be installed at startup, so
    every invocation installs it on the loop serving it.
    """
    supervisor = app.state.supervisor
    supervisor.install()
    supervisor.install_loop_handler(asyncio.get_running_loop())
    await app(scope, receive, send)


handler: Final = Mangum(supervised_app, lifespan="off")
