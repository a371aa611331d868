"""Application runtime scaffolding for the CFC relay bot process."""

from __future__ import annotations

import logging
import os
import time
from typing import Any, Awaitable, Callable, Optional, Sequence

from aiohttp import web
from discord.ext import commands

from shared import health as healthmod
from shared.config import get_bot_name, get_env_name
from shared.logging import get_trace_id, set_trace_id, setup_logging
from config.runtime import get_log_level, get_port

log = logging.getLogger("simdem.runtime")

EXTENSIONS: Sequence[str] = ("modules.cfc",)


async def create_app(*, runtime: "Runtime | None" = None) -> web.Application:
    """Create and configure the aiohttp application used by the runtime."""

    static_fields = {"env": get_env_name(), "bot": get_bot_name()}
    access_logger = setup_logging(
        level=get_log_level(),
        static_fields=static_fields,
        access_logger_name="aiohttp.access",
    )

    healthmod.set_component("runtime", True)

    @web.middleware
    async def tracing_middleware(
        request: web.Request, handler: Callable[[web.Request], Awaitable[web.StreamResponse]]
    ) -> web.StreamResponse:
        trace = set_trace_id()
        started = time.perf_counter()
        status = 500
        try:
            response = await handler(request)
            status = getattr(response, "status", status)
            response.headers["X-Trace-Id"] = trace
            return response
        finally:
            duration_ms = int((time.perf_counter() - started) * 1000)
            access_logger.info(
                "http_request",
                extra={
                    "trace": trace,
                    "path": request.path,
                    "method": request.method,
                    "status": status,
                    "ms": duration_ms,
                },
            )

    app = web.Application(middlewares=[tracing_middleware])

    def _base_payload() -> dict[str, Any]:
        payload: dict[str, Any] = {
            "bot": get_bot_name(),
            "env": get_env_name(),
            "version": os.getenv("BOT_VERSION", "dev"),
        }
        if runtime is not None:
            payload.update(runtime.status())
        return payload

    async def root(_: web.Request) -> web.Response:
        payload = _base_payload()
        payload.update({"ok": True, "trace": get_trace_id()})
        return web.json_response(payload)

    async def ready(_: web.Request) -> web.Response:
        ok = healthmod.overall_ready()
        payload = {"ok": ok, "components": healthmod.components_snapshot()}
        return web.json_response(payload, status=200 if ok else 503)

    async def healthz(_: web.Request) -> web.Response:
        payload = _base_payload()
        payload.update({"ok": True, "endpoint": "healthz"})
        return web.json_response(payload)

    app.router.add_get("/", root)
    app.router.add_get("/ready", ready)
    app.router.add_get("/healthz", healthz)

    return app


class Runtime:
    """Container object that wires the bot, its extensions and the health server."""

    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot
        self._web_runner: Optional[web.AppRunner] = None
        self._web_site: Optional[web.TCPSite] = None
        self._started_mono = time.monotonic()

    def status(self) -> dict[str, Any]:
        cog = self.bot.get_cog("CFCRelay")
        state = getattr(cog, "state", None)
        return {
            "uptime_s": round(max(0.0, time.monotonic() - self._started_mono), 1),
            "cfc_collecting": bool(getattr(state, "is_collecting", False)),
            "cfc_records": len(state.store) if state is not None else 0,
        }

    async def start_webserver(self, *, port: Optional[int] = None) -> None:
        if self._web_site is not None:
            return
        port = port or get_port()
        app = await create_app(runtime=self)
        self._web_runner = web.AppRunner(app)
        await self._web_runner.setup()
        self._web_site = web.TCPSite(self._web_runner, host="0.0.0.0", port=port)
        await self._web_site.start()
        log.info("web server listening", extra={"port": port})

    async def shutdown_webserver(self) -> None:
        site, runner = self._web_site, self._web_runner
        self._web_site = None
        self._web_runner = None
        if site is not None:
            await site.stop()
        if runner is not None:
            await runner.cleanup()
        healthmod.set_component("runtime", False)

    async def load_extensions(self) -> None:
        """Load all feature modules into the shared bot instance."""

        for ext in EXTENSIONS:
            await self.bot.load_extension(ext)
            log.info("feature module loaded", extra={"feature_module": ext})

    async def sync_commands(self) -> int:
        synced = await self.bot.tree.sync()
        log.info("application commands synced", extra={"count": len(synced)})
        return len(synced)

    async def start(self, token: str) -> None:
        await self.start_webserver()
        await self.load_extensions()
        await self.bot.start(token)

    async def close(self) -> None:
        await self.shutdown_webserver()
        if not self.bot.is_closed():
            await self.bot.close()
