from __future__ import annotations

import logging
from pathlib import Path

import typer

from fetchable_image.config import AppConfig, load_config
from fetchable_image.schemas import FetchOptions
from fetchable_image.service import ImageService

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

app = typer.Typer(help="Fetchable Image CLI")

_CONFIG_OPTION = typer.Option(
    None,
    "--config",
    help="Config file path (JSON or YAML).",
    exists=True,
    dir_okay=False,
    readable=True,
)
_CACHES_DIR_OPTION = typer.Option(
    None, "--caches-dir", help="Override the caches root directory."
)
_DOCUMENTS_DIR_OPTION = typer.Option(
    None, "--documents-dir", help="Override the documents root directory."
)
_DOCUMENTS_OPTION = typer.Option(
    False, "--documents", help="Use the documents root instead of the caches root."
)
_NO_LOCAL_STORAGE_OPTION = typer.Option(
    False, "--no-local-storage", help="Never read from or write to the local cache."
)


@app.command("fetch")
def fetch(
    url: str = typer.Argument(..., help="Remote image URL."),
    out: Path | None = typer.Option(None, "--out", help="Write fetched bytes to this file."),
    config_path: Path | None = _CONFIG_OPTION,
    caches_dir: Path | None = _CACHES_DIR_OPTION,
    documents_dir: Path | None = _DOCUMENTS_DIR_OPTION,
    documents: bool = _DOCUMENTS_OPTION,
    no_local_storage: bool = _NO_LOCAL_STORAGE_OPTION,
) -> None:
    """Fetch one image, from the local cache when present."""
    options = _build_options(documents=documents, no_local_storage=no_local_storage)
    with _build_service(config_path, caches_dir, documents_dir) as service:
        outcome = service.fetch_image(url, options).result()

    if not outcome.ok or outcome.data is None:
        typer.echo(f"fetch failed: {outcome.failure} {outcome.detail}".rstrip(), err=True)
        raise typer.Exit(code=1)

    if out is not None:
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_bytes(outcome.data)
    typer.echo(f"source={outcome.source} bytes={len(outcome.data)} stored={outcome.stored}")


@app.command("fetch-batch")
def fetch_batch(
    urls_file: Path = typer.Option(
        ...,
        "--urls-file",
        help="Path to text file with image URLs (one per line).",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    out_dir: Path | None = typer.Option(
        None, "--out-dir", help="Write each fetched image as <index>.bin into this directory."
    ),
    config_path: Path | None = _CONFIG_OPTION,
    caches_dir: Path | None = _CACHES_DIR_OPTION,
    documents_dir: Path | None = _DOCUMENTS_DIR_OPTION,
    documents: bool = _DOCUMENTS_OPTION,
    no_local_storage: bool = _NO_LOCAL_STORAGE_OPTION,
) -> None:
    """Fetch images one after another, reporting progress per item.

    Exits with code 1 when any image could not be fetched.
    """
    urls = _load_urls(urls_file)
    if not urls:
        typer.echo("no urls found in file", err=True)
        raise typer.Exit(code=1)

    options = _build_options(documents=documents, no_local_storage=no_local_storage)
    if out_dir is not None:
        out_dir.mkdir(parents=True, exist_ok=True)

    def _on_item(data: bytes | None, index: int) -> None:
        status = "failed" if data is None else f"bytes={len(data)}"
        typer.echo(f"[{index + 1}/{len(urls)}] {urls[index]} {status}")
        if data is not None and out_dir is not None:
            (out_dir / f"{index}.bin").write_bytes(data)

    with _build_service(config_path, caches_dir, documents_dir) as service:
        outcomes = service.fetch_batch_images(urls, options, on_item=_on_item).result()

    fetched = sum(1 for outcome in outcomes if outcome.ok)
    typer.echo(f"fetched={fetched} failed={len(outcomes) - fetched} total={len(outcomes)}")
    if fetched < len(outcomes):
        raise typer.Exit(code=1)


@app.command("path")
def local_path(
    url: str | None = typer.Argument(None, help="Remote image URL."),
    name: str | None = typer.Option(None, "--name", help="Custom file name (without URL)."),
    caches_dir: Path | None = _CACHES_DIR_OPTION,
    documents_dir: Path | None = _DOCUMENTS_DIR_OPTION,
    config_path: Path | None = _CONFIG_OPTION,
    documents: bool = _DOCUMENTS_OPTION,
) -> None:
    """Print the local cache path for a URL or custom file name."""
    options = _build_options(documents=documents, custom_file_name=name)
    with _build_service(config_path, caches_dir, documents_dir) as service:
        path = service.local_file_path(url, options)

    if path is None:
        typer.echo("cannot resolve a local path: give a URL or --name", err=True)
        raise typer.Exit(code=1)
    typer.echo(str(path))


@app.command("delete")
def delete(
    url: str | None = typer.Argument(None, help="Remote image URL."),
    name: str | None = typer.Option(None, "--name", help="Custom file name (without URL)."),
    config_path: Path | None = _CONFIG_OPTION,
    caches_dir: Path | None = _CACHES_DIR_OPTION,
    documents_dir: Path | None = _DOCUMENTS_DIR_OPTION,
    documents: bool = _DOCUMENTS_OPTION,
) -> None:
    """Delete one cached image."""
    options = _build_options(documents=documents, custom_file_name=name)
    with _build_service(config_path, caches_dir, documents_dir) as service:
        result = service.delete_image_result(url, options)

    if not result:
        typer.echo(f"delete failed: {result.failure} {result.detail}".rstrip(), err=True)
        raise typer.Exit(code=1)
    typer.echo("deleted")


@app.command("delete-batch")
def delete_batch(
    urls_file: Path = typer.Option(
        ...,
        "--urls-file",
        help="Path to text file with image URLs (one per line).",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    config_path: Path | None = _CONFIG_OPTION,
    caches_dir: Path | None = _CACHES_DIR_OPTION,
    documents_dir: Path | None = _DOCUMENTS_DIR_OPTION,
    documents: bool = _DOCUMENTS_OPTION,
) -> None:
    """Delete the cached images of every URL in a file."""
    urls = _load_urls(urls_file)
    options = _build_options(documents=documents)
    with _build_service(config_path, caches_dir, documents_dir) as service:
        results = service.delete_batch_images(urls, options).result()

    deleted = sum(1 for result in results if result.ok)
    typer.echo(f"deleted={deleted} missing={len(results) - deleted} total={len(results)}")


@app.command("save")
def save(
    source: Path = typer.Argument(
        ..., help="Local image file to store.", exists=True, dir_okay=False, readable=True
    ),
    name: str = typer.Option(..., "--name", help="File name to store the image under."),
    config_path: Path | None = _CONFIG_OPTION,
    caches_dir: Path | None = _CACHES_DIR_OPTION,
    documents_dir: Path | None = _DOCUMENTS_DIR_OPTION,
    documents: bool = _DOCUMENTS_OPTION,
) -> None:
    """Store a local file under a custom name."""
    options = _build_options(documents=documents, custom_file_name=name)

    with _build_service(config_path, caches_dir, documents_dir) as service:
        result = service.save_result(source.read_bytes(), options)
        path = service.local_file_path(None, options)

    if not result:
        typer.echo(f"save failed: {result.failure} {result.detail}".rstrip(), err=True)
        raise typer.Exit(code=1)
    typer.echo(f"saved {path}")


def _build_service(
    config_path: Path | None,
    caches_dir: Path | None,
    documents_dir: Path | None,
) -> ImageService:
    try:
        config = load_config(config_path) if config_path is not None else AppConfig()
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc

    storage_update: dict[str, str] = {}
    if caches_dir is not None:
        storage_update["caches_dir"] = str(caches_dir)
    if documents_dir is not None:
        storage_update["documents_dir"] = str(documents_dir)
    if storage_update:
        config = config.model_copy(
            update={"storage": config.storage.model_copy(update=storage_update)}
        )
    return ImageService.from_config(config)


def _build_options(
    *,
    documents: bool = False,
    no_local_storage: bool = False,
    custom_file_name: str | None = None,
) -> FetchOptions:
    try:
        return FetchOptions(
            store_in_caches=not documents,
            allow_local_storage=not no_local_storage,
            custom_file_name=custom_file_name,
        )
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc


def _load_urls(path: Path) -> list[str]:
    urls: list[str] = []
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        urls.append(line)
    return urls


def main() -> None:
    """CLI entrypoint."""
    app()


if __name__ == "__main__":
    main()
