from __future__ import annotations

from collections.abc import Callable, Sequence
from concurrent.futures import Future
from pathlib import Path
from typing import Protocol, runtime_checkable

from fetchable_image.schemas import FetchOptions, FetchOutcome, OperationResult


@runtime_checkable
class FetchableImage(Protocol):
    """Operations offered by anything that fetches, caches and deletes images.

    ``ImageService`` is the shared implementation; other types conform by
    delegating to one.
    """

    def local_file_path(
        self, locator: str | None, options: FetchOptions | None = None
    ) -> Path | None: ...

    def fetch_image(
        self,
        locator: str | None,
        options: FetchOptions | None = None,
        completion: Callable[[bytes | None], None] | None = None,
    ) -> Future[FetchOutcome]: ...

    def fetch_batch_images(
        self,
        locators: Sequence[str | None],
        options: FetchOptions | None = None,
        on_item: Callable[[bytes | None, int], None] | None = None,
        on_complete: Callable[[], None] | None = None,
    ) -> Future[list[FetchOutcome]]: ...

    def delete_image(self, locator: str | None, options: FetchOptions | None = None) -> bool: ...

    def delete_batch_images(
        self, locators: Sequence[str | None], options: FetchOptions | None = None
    ) -> Future[list[OperationResult]]: ...

    def delete_batch_images_by_options(
        self, option_sets: Sequence[FetchOptions]
    ) -> Future[list[OperationResult]]: ...

    def save(self, data: bytes, options: FetchOptions) -> bool: ...
