"""Command-line interface for the photo importers."""

import logging
import uuid
from pathlib import Path

import httpx
import typer
from rich.console import Console
from rich.logging import RichHandler

from photo_importer.flickr import FlickrPhotosImporter
from photo_importer.google_photos import GooglePhotosImporter
from photo_importer.google_photos_client import GoogleCredentialFactory
from photo_importer.job_store import LocalJobStore
from photo_importer.models import (
    AppCredentials,
    ImportResult,
    PhotosContainerResource,
    TokensAndUrlAuthData,
    TokenSecretAuthData,
)
from photo_importer.streams import ImageStreamProvider
from photo_importer.utils import load_container

app = typer.Typer(
    name="photo-importer",
    help="Import photos and albums into Flickr or Google Photos",
    add_completion=False,
)
console = Console()
logger = logging.getLogger(__name__)

DEFAULT_STORE_DIR = Path(".photo-importer")

ContainerArgument = typer.Argument(
    ...,
    help="JSON file holding the albums and photos to import",
    exists=True,
    file_okay=True,
    dir_okay=False,
    readable=True,
)


def setup_logging(verbose: bool) -> None:
    """Configure logging with Rich handler.

    Args:
        verbose: Enable verbose (DEBUG) logging
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, console=console)],
        force=True,
    )


def parse_job_id(job_id: str | None) -> uuid.UUID:
    if job_id is None:
        return uuid.uuid4()
    try:
        return uuid.UUID(job_id)
    except ValueError:
        raise typer.BadParameter(f"'{job_id}' is not a valid UUID", param_hint="--job-id")


def read_container(path: Path) -> PhotosContainerResource:
    try:
        return load_container(path)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


def report(result: ImportResult, job_id: uuid.UUID, container: PhotosContainerResource) -> int:
    """Print an import summary.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    console.print("\n[bold]Import Summary:[/bold]")
    console.print(f"  Job: {job_id}")
    console.print(f"  Albums: {len(container.albums or [])}")
    console.print(f"  Photos: {len(container.photos or [])}")

    if result.success:
        console.print("  [green]Result: OK[/green]")
        return 0

    console.print(f"  [red]Result: ERROR ({result.error_kind.value})[/red]")
    console.print(f"  [red]{result.message}[/red]")
    return 1


@app.command()
def flickr(
    container_file: Path = ContainerArgument,
    job_id: str = typer.Option(
        None,
        "--job-id",
        "-j",
        help="Job id (UUID); reuse it to resume a job. Defaults to a new id",
    ),
    api_key: str = typer.Option(..., "--api-key", envvar="FLICKR_API_KEY", help="Flickr API key"),
    api_secret: str = typer.Option(
        ..., "--api-secret", envvar="FLICKR_API_SECRET", help="Flickr API secret"
    ),
    token: str = typer.Option(
        ..., "--token", envvar="FLICKR_OAUTH_TOKEN", help="User's OAuth token"
    ),
    token_secret: str = typer.Option(
        ..., "--token-secret", envvar="FLICKR_OAUTH_TOKEN_SECRET", help="User's OAuth token secret"
    ),
    store_dir: Path = typer.Option(
        DEFAULT_STORE_DIR,
        "--store-dir",
        envvar="PHOTO_IMPORTER_STORE_DIR",
        help="Directory holding per-job state",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Import albums and photos into Flickr.

    Albums are created on Flickr when their first photo is uploaded.
    """
    setup_logging(verbose)
    parsed_job_id = parse_job_id(job_id)
    container = read_container(container_file)

    with ImageStreamProvider() as stream_provider:
        importer = FlickrPhotosImporter(
            AppCredentials(api_key, api_secret),
            LocalJobStore(store_dir),
            stream_provider,
        )
        try:
            result = importer.import_item(
                parsed_job_id, TokenSecretAuthData(token, token_secret), container
            )
        except ValueError as e:
            logger.error(f"Import failed: {e}", exc_info=True)
            raise typer.Exit(1)

    raise typer.Exit(report(result, parsed_job_id, container))


@app.command()
def google(
    container_file: Path = ContainerArgument,
    job_id: str = typer.Option(
        None,
        "--job-id",
        "-j",
        help="Job id (UUID) whose staged photos to use. Defaults to a new id",
    ),
    client_id: str = typer.Option(
        ..., "--client-id", envvar="GOOGLE_CLIENT_ID", help="OAuth client id"
    ),
    client_secret: str = typer.Option(
        ..., "--client-secret", envvar="GOOGLE_CLIENT_SECRET", help="OAuth client secret"
    ),
    access_token: str = typer.Option(
        None, "--access-token", envvar="GOOGLE_ACCESS_TOKEN", help="User's access token"
    ),
    refresh_token: str = typer.Option(
        None, "--refresh-token", envvar="GOOGLE_REFRESH_TOKEN", help="User's refresh token"
    ),
    store_dir: Path = typer.Option(
        DEFAULT_STORE_DIR,
        "--store-dir",
        envvar="PHOTO_IMPORTER_STORE_DIR",
        help="Directory holding per-job state",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Import photos into Google Photos.

    Albums are not supported; every photo goes to the library.
    """
    setup_logging(verbose)

    if not access_token and not refresh_token:
        console.print(
            "[red]Error: a Google access token or refresh token is required. "
            "Provide via --access-token/--refresh-token or the GOOGLE_ACCESS_TOKEN/"
            "GOOGLE_REFRESH_TOKEN environment variables.[/red]"
        )
        raise typer.Exit(1)

    parsed_job_id = parse_job_id(job_id)
    container = read_container(container_file)

    with ImageStreamProvider() as stream_provider, httpx.Client(timeout=60.0) as http_client:
        importer = GooglePhotosImporter(
            GoogleCredentialFactory(AppCredentials(client_id, client_secret)),
            LocalJobStore(store_dir),
            stream_provider,
            http_client,
        )
        result = importer.import_item(
            parsed_job_id, TokensAndUrlAuthData(access_token, refresh_token), container
        )

    raise typer.Exit(report(result, parsed_job_id, container))


if __name__ == "__main__":
    app()
