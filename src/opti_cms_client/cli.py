"""Command-line entry point for the CMS client.

Configuration comes from ``OPTI_CMS_*`` environment variables (see
``ClientConfig.from_env``). Results are printed as JSON.

Commands:
- ``token``: run the client-credentials exchange and print the token response
- ``get``: fetch one content item
- ``list``: list the items of a container
- ``delete``: delete one content item
"""

import asyncio
import json
import logging
import os
import signal
import sys
from collections.abc import Awaitable, Callable
from typing import Any

import typer

from .client import CmsClient
from .config import ClientConfig
from .errors import ApiError, CmsClientError

logger = logging.getLogger("opti_cms_client.cli")

app = typer.Typer(
    name="opti-cms",
    help="Query and manage CMS content items.",
    no_args_is_help=True,
    add_completion=False,
)


def _configure_logging() -> None:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s %(name)s [%(levelname)s] %(message)s",
    )


def _echo_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, default=str))


def _run(operation: Callable[[CmsClient], Awaitable[Any]]) -> None:
    """Run ``operation`` against a client built from the environment.

    ``CmsClientError`` is reported on stderr and exits with code 1; any other
    exception propagates.
    """

    async def _main() -> Any:
        async with CmsClient(ClientConfig.from_env()) as client:
            return await operation(client)

    try:
        result = asyncio.run(_main())
    except ApiError as exc:
        typer.echo(json.dumps(exc.to_dict()), err=True)
        raise typer.Exit(code=1) from exc
    except CmsClientError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    _echo_json(result)


@app.callback()
def main_callback() -> None:
    """Configure logging before any command runs."""
    _configure_logging()


@app.command("token")
def token_command() -> None:
    """Obtain an access token with the configured client credentials."""

    async def _op(client: CmsClient) -> Any:
        token = await client.authenticate()
        return token.model_dump()

    _run(_op)


@app.command("get")
def get_command(content_id: str = typer.Argument(help="Content item id.")) -> None:
    """Fetch a single content item."""

    async def _op(client: CmsClient) -> Any:
        result = await client.get_content(content_id)
        return {"status": result.status, "etag": result.etag, "data": result.data.model_dump(by_alias=True)}

    _run(_op)


@app.command("list")
def list_command(
    container_key: str = typer.Argument(help="Container whose items are listed."),
    page_index: int | None = typer.Option(None, "--page-index", help="Zero-based page index."),
    page_size: int | None = typer.Option(None, "--page-size", help="Items per page."),
) -> None:
    """List content items in a container."""

    async def _op(client: CmsClient) -> Any:
        page = await client.list_content(container_key, page_index=page_index, page_size=page_size)
        return page.model_dump(by_alias=True)

    _run(_op)


@app.command("delete")
def delete_command(content_id: str = typer.Argument(help="Content item id.")) -> None:
    """Delete a content item."""

    async def _op(client: CmsClient) -> Any:
        result = await client.delete_content(content_id)
        return {"status": result.status}

    _run(_op)


def handle_interrupt(signum: int, frame: object) -> None:  # noqa: ARG001
    """Exit quietly on SIGINT or SIGTERM."""
    logger.info("Received interrupt signal, shutting down...")
    sys.exit(130)


def main() -> None:
    """Entry point for the opti-cms console script."""
    signal.signal(signal.SIGINT, handle_interrupt)
    signal.signal(signal.SIGTERM, handle_interrupt)
    app()


if __name__ == "__main__":
    main()
