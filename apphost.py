"""
Runs the admin site and the demo site side by side in one process.

    python apphost.py                      # both sites
    python apphost.py --site admin         # only the admin site
"""

from __future__ import annotations

import argparse
import asyncio
import logging

import uvicorn

from config import Settings

logger = logging.getLogger(__name__)

SITE_APPS = {
    "admin": "main:admin_app",
    "demosite": "main:demosite_app",
}


def build_server_config(app: str, host: str, port: int, settings: Settings) -> uvicorn.Config:
    return uvicorn.Config(
        app,
        host=host,
        port=port,
        # The transport must not announce itself; the middleware strips
        # disclosure headers only from what the application sends.
        server_header=False,
        date_header=True,
        proxy_headers=True,
        log_config=None,
        access_log=True,
        log_level=settings.log_level.lower(),
    )


def planned_servers(
    selection: str, host: str, ports: dict[str, int], settings: Settings
) -> list[uvicorn.Config]:
    names = list(SITE_APPS) if selection == "all" else [selection]
    return [build_server_config(SITE_APPS[name], host, ports[name], settings) for name in names]


async def serve(configs: list[uvicorn.Config]) -> None:
    servers = [uvicorn.Server(config) for config in configs]
    for config in configs:
        logger.info("Starting site", extra={"app": config.app, "port": config.port})
    tasks = [asyncio.create_task(server.serve()) for server in servers]
    done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
    # Only one server receives the shutdown signal; stop the others with it.
    for server in servers:
        server.should_exit = True
    await asyncio.gather(*done, *pending)


def parse_args(argv: list[str] | None, settings: Settings) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the DfE CMS web sites.")
    parser.add_argument("--site", choices=[*SITE_APPS, "all"], default="all")
    parser.add_argument("--host", default=settings.host)
    parser.add_argument("--admin-port", type=int, default=settings.admin_port)
    parser.add_argument("--demosite-port", type=int, default=settings.demosite_port)
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    # Importing main validates settings and configures logging.
    from main import settings

    args = parse_args(argv, settings)
    ports = {"admin": args.admin_port, "demosite": args.demosite_port}
    asyncio.run(serve(planned_servers(args.site, args.host, ports, settings)))


if __name__ == "__main__":
    main()
