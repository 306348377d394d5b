from typing import Iterable, List

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.types import ASGIApp, Receive, Scope, Send


class PathExemptCORSMiddleware(CORSMiddleware):
    """
    CORSMiddleware that passes requests under `exempt_prefixes` straight
    through. The notification functions answer their own preflights with
    `Access-Control-Allow-Origin: *` whatever the portal's origin list is.
    """

    def __init__(self, app: ASGIApp, exempt_prefixes: Iterable[str] = (), **kwargs) -> None:
        super().__init__(app, **kwargs)
        self.exempt_prefixes = tuple(exempt_prefixes)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and self.exempt_prefixes and scope["path"].startswith(self.exempt_prefixes):
            await self.app(scope, receive, send)
            return
        await super().__call__(scope, receive, send)


def install_cors(app: FastAPI, origins: List[str], exempt_prefixes: Iterable[str] = ()) -> None:
    app.add_middleware(
        PathExemptCORSMiddleware,
        exempt_prefixes=exempt_prefixes,
        allow_origins=origins,
        allow_credentials="*" not in origins,  # credentials are invalid with a wildcard origin
        allow_methods=["*"],
        allow_headers=["*"],
    )
