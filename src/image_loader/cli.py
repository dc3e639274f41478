"""
Image Loader CLI

Loads locally built images into the Docker engine idempotently:
- load: Load an archive unless an equivalent image is present, then reconcile tags
- check: Run the existence check (and tag reconciliation) without loading
- images: List images and tags currently in the store
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

import typer

from .cli_context import CLIContext
from .models import DesiredImage, load_desired_image
from .operations import Operations, OpsConfig, run_and_exit
from .operations.printers import print_check_result, print_images, print_load_action
from .store.base import ImageStore

app = typer.Typer(name="image-loader", help="Load container images into the local store idempotently")

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@contextmanager
def _logging(verbose: bool, log_to_file: Optional[str]) -> Iterator[None]:
    """Apply --verbose / --log-to-file for the duration of one command."""
    package_logger = logging.getLogger("image_loader")
    previous_level = package_logger.level
    if verbose:
        package_logger.setLevel(logging.DEBUG)

    handler = None
    if log_to_file:
        handler = logging.FileHandler(log_to_file)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        package_logger.addHandler(handler)
        if not verbose and package_logger.getEffectiveLevel() > logging.INFO:
            package_logger.setLevel(logging.INFO)

    try:
        yield
    finally:
        if handler is not None:
            package_logger.removeHandler(handler)
            handler.close()
        package_logger.setLevel(previous_level)


def _create_fake_store(desired: Optional[DesiredImage] = None) -> ImageStore:
    """
    Create an in-memory store for smoke testing.

    When a desired image is given, loading any archive into the fake
    registers that image, so the full load path can run end to end.
    """
    from .store.fakes import FakeImageStore, StoredImage

    fake = FakeImageStore()
    if desired is not None:
        fake.load_result = StoredImage(
            id=desired.digest,
            architecture=desired.config.architecture or "",
            os=desired.config.os or "",
            config=desired.config.config,
        )
    return fake


def _operations(
    config: OpsConfig,
    context: CLIContext,
    store_name: Optional[str],
    desired: Optional[DesiredImage] = None,
) -> Operations:
    if store_name == "fake":
        return Operations(config=config, store=_create_fake_store(desired), settings=context.settings)
    if store_name not in (None, "docker"):
        raise ValueError(f"Unknown store '{store_name}'. Use 'docker'")

    return Operations(config=config, store=context.store, settings=context.settings)


@app.command()
def load(
    archive: str = typer.Argument(..., help="Image archive (docker save / OCI tarball) to load"),
    tags: Optional[List[str]] = typer.Argument(None, help="Repo tags (name:tag) the image should carry"),
    digest: str = typer.Option(..., "--digest", help="Expected image ID (config digest, sha256:...)"),
    config_path: str = typer.Option(..., "--config", help="Path to the image's OCI config JSON"),
    output: str = typer.Option("human", "--output", help="Output format: human or json"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Deadline for the whole load, in seconds"),
    verbose: bool = typer.Option(False, "--verbose", help="Log every store call"),
    log_to_file: Optional[str] = typer.Option(None, "--log-to-file", help="Also write logs to this file"),
    store: Optional[str] = typer.Option(None, "--store", envvar="IMAGE_LOADER_STORE", hidden=True, help="Store override for testing"),
) -> None:
    """Load an image archive unless an equivalent image is present, then apply tags."""

    def _load() -> None:
        with _logging(verbose, log_to_file):
            config = OpsConfig(output=output, timeout_s=timeout)
            desired = load_desired_image(digest, config_path, tags or [])
            context = CLIContext.from_env()
            try:
                ops = _operations(config, context, store, desired)
                action = ops.load(desired, archive)
            finally:
                context.close()
            print_load_action(action, config.output)

    run_and_exit(_load)


@app.command()
def check(
    tags: Optional[List[str]] = typer.Argument(None, help="Repo tags (name:tag) the image should carry"),
    digest: str = typer.Option(..., "--digest", help="Expected image ID (config digest, sha256:...)"),
    config_path: str = typer.Option(..., "--config", help="Path to the image's OCI config JSON"),
    output: str = typer.Option("human", "--output", help="Output format: human or json"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Deadline for the check, in seconds"),
    verbose: bool = typer.Option(False, "--verbose", help="Log every store call"),
    store: Optional[str] = typer.Option(None, "--store", envvar="IMAGE_LOADER_STORE", hidden=True, help="Store override for testing"),
) -> None:
    """Check whether an equivalent image is present; tag it if so. Never loads."""

    def _check() -> None:
        with _logging(verbose, None):
            config = OpsConfig(output=output, timeout_s=timeout)
            desired = load_desired_image(digest, config_path, tags or [])
            context = CLIContext.from_env()
            try:
                result = _operations(config, context, store).check(desired)
            finally:
                context.close()
            print_check_result(result, config.output)

    run_and_exit(_check)


@app.command()
def images(
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Deadline for the listing, in seconds"),
    store: Optional[str] = typer.Option(None, "--store", envvar="IMAGE_LOADER_STORE", hidden=True, help="Store override for testing"),
) -> None:
    """List images in the store with their tags."""

    def _images() -> None:
        config = OpsConfig(timeout_s=timeout)
        context = CLIContext.from_env()
        try:
            listed = _operations(config, context, store).images()
        finally:
            context.close()
        print_images(listed)

    run_and_exit(_images)


def main() -> None:
    """CLI entry point."""
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    app()


if __name__ == "__main__":
    main()
