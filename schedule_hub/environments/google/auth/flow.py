"""
Google Authorization Flow - one-shot loopback OAuth for setup time.

Flow:
=====
1. Bind a listener on 127.0.0.1:<OAUTH_REDIRECT_PORT>
2. Open the consent URL in the default browser
3. Wait for exactly one redirect to /oauth/callback (?code=... or ?error=...)
4. Exchange the code for the first OAuthCredential
5. Tear the listener down, whatever the outcome

The listener is a small FastAPI app served by uvicorn inside the caller's
event loop. It is acquired through an async context manager so that
success, denial, exchange failure and timeout all release the port.
"""

import asyncio
import logging
import socket
import webbrowser
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional

import uvicorn
from fastapi import FastAPI, Query
from fastapi.responses import HTMLResponse

from schedule_hub.core.config import settings
from schedule_hub.environments.base import (
    AuthenticationError,
    AuthorizationDeniedError,
    AuthorizationStateError,
    AuthorizationTimeoutError,
    NoCodeError,
    OAuthCredential,
)
from schedule_hub.environments.google.auth.client import GoogleAuthClient
from schedule_hub.environments.google.auth.schemas import CALENDAR_SCOPES


logger = logging.getLogger("schedule_hub.environments.google.flow")


# ---------------------------------------------------------------------------
# BROWSER PAGES
# ---------------------------------------------------------------------------

_PAGE_TEMPLATE = """<html>
<body style="font-family: system-ui; text-align: center; padding: 50px;">
    <h1>{title}</h1>
    <p>{message}</p>
    {script}
</body>
</html>"""


def _page(title: str, message: str, status_code: int, close_tab: bool = False) -> HTMLResponse:
    script = "<script>setTimeout(() => window.close(), 2000);</script>" if close_tab else ""
    return HTMLResponse(
        _PAGE_TEMPLATE.format(title=title, message=message, script=script),
        status_code=status_code,
    )


# ---------------------------------------------------------------------------
# FLOW
# ---------------------------------------------------------------------------


class GoogleAuthFlow:
    """
    Runs the interactive authorization once and returns the new credential.

    Example:
        flow = GoogleAuthFlow()
        credential = await flow.run()
        store.save(credential.model_dump(mode="json"))

    Raises from run():
        AuthorizationDeniedError: The user (or Google) returned ?error=...
        NoCodeError: The redirect had neither code nor error
        AuthorizationStateError: The redirect's state did not match
        TokenExchangeError: The code could not be exchanged
        AuthorizationTimeoutError: No redirect arrived in time
        OSError: The redirect port could not be bound
    """

    def __init__(
        self,
        auth_client: Optional[GoogleAuthClient] = None,
        host: Optional[str] = None,
        port: Optional[int] = None,
        callback_path: Optional[str] = None,
        timeout: Optional[float] = None,
        open_browser: Optional[Callable[[str], object]] = None,
    ):
        """
        Args:
            auth_client: Client used to build the URL and exchange the code
            host: Interface to bind (defaults to settings)
            port: Port registered in the redirect URI (defaults to settings)
            callback_path: Redirect path (defaults to settings)
            timeout: Seconds to wait for the redirect (defaults to settings)
            open_browser: Opens the consent URL (defaults to webbrowser.open)
        """
        self.host = host or settings.OAUTH_REDIRECT_HOST
        self.port = port if port is not None else settings.OAUTH_REDIRECT_PORT
        self.callback_path = callback_path or settings.OAUTH_REDIRECT_PATH
        self.timeout = timeout if timeout is not None else settings.OAUTH_FLOW_TIMEOUT_SECONDS
        self.redirect_uri = f"http://localhost:{self.port}{self.callback_path}"
        self.auth_client = auth_client or GoogleAuthClient(redirect_uri=self.redirect_uri)
        self._open_browser = open_browser or webbrowser.open

    async def run(self) -> OAuthCredential:
        """Run the flow to completion and return the initial credential."""
        loop = asyncio.get_running_loop()
        outcome: asyncio.Future = loop.create_future()
        state = self.auth_client.generate_state()
        app = self._build_callback_app(state, outcome)

        async with self._serve(app):
            auth_url = self.auth_client.get_authorization_url(
                state=state,
                scopes=CALENDAR_SCOPES,
                redirect_uri=self.redirect_uri,
            )
            logger.info(f"Waiting for Google authorization on {self.redirect_uri}")
            self._open_browser(auth_url)

            try:
                return await asyncio.wait_for(outcome, timeout=self.timeout)
            except asyncio.TimeoutError:
                logger.error(f"Authorization timed out after {self.timeout}s")
                raise AuthorizationTimeoutError(
                    f"No authorization redirect received within {self.timeout} seconds"
                ) from None

    # -------------------------------------------------------------------------
    # CALLBACK APP
    # -------------------------------------------------------------------------

    def _build_callback_app(self, expected_state: str, outcome: asyncio.Future) -> FastAPI:
        app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None)

        @app.get(self.callback_path)
        async def oauth_callback(
            code: Optional[str] = Query(None),
            error: Optional[str] = Query(None),
            state: Optional[str] = Query(None),
        ) -> HTMLResponse:
            if outcome.done():
                return _page(
                    "Already Handled",
                    "This authorization request has already completed.",
                    409,
                )

            if error:
                logger.warning(f"Authorization denied: {error}")
                outcome.set_exception(AuthorizationDeniedError(error))
                return _page(
                    "Authentication Failed",
                    f"Error: {error}<br>You can close this window.",
                    400,
                )

            if not code:
                outcome.set_exception(NoCodeError("No authorization code received"))
                return _page("No Authorization Code", "No authorization code was received.", 400)

            if state != expected_state:
                logger.warning("Authorization redirect carried an unexpected state")
                outcome.set_exception(AuthorizationStateError("State parameter mismatch"))
                return _page("Authentication Failed", "Invalid state parameter.", 400)

            try:
                credential = await self.auth_client.exchange_code_for_tokens(
                    code, redirect_uri=self.redirect_uri
                )
            except AuthenticationError as e:
                if not outcome.done():
                    outcome.set_exception(e)
                return _page("Token Exchange Failed", "Please try again.", 500)

            if outcome.done():
                return _page("Already Handled", "This authorization request has already completed.", 409)

            outcome.set_result(credential)
            return _page(
                "Authentication Successful!",
                "You can close this window and return to your schedule.",
                200,
                close_tab=True,
            )

        return app

    # -------------------------------------------------------------------------
    # LISTENER LIFETIME
    # -------------------------------------------------------------------------

    @asynccontextmanager
    async def _serve(self, app: FastAPI) -> AsyncIterator[uvicorn.Server]:
        """
        Serve ``app`` on the redirect port for the duration of the block.

        The socket is bound here rather than by uvicorn so that a busy port
        surfaces as OSError to the caller.
        """
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((self.host, self.port))
        except OSError:
            sock.close()
            raise

        config = uvicorn.Config(
            app,
            lifespan="off",
            log_config=None,
            access_log=False,
            timeout_graceful_shutdown=5,
        )
        server = uvicorn.Server(config)
        serve_task = asyncio.ensure_future(server.serve(sockets=[sock]))

        try:
            while not server.started:
                if serve_task.done():
                    serve_task.result()
                    raise AuthenticationError("Loopback listener stopped before starting")
                await asyncio.sleep(0.01)

            logger.debug(f"Loopback listener started on {self.host}:{self.port}")
            yield server
        finally:
            server.should_exit = True
            try:
                await serve_task
            finally:
                sock.close()
                logger.debug(f"Loopback listener on {self.host}:{self.port} closed")
