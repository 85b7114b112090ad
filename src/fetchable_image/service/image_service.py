from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from pathlib import Path
from typing import Any, Protocol

import requests

from fetchable_image.config import AppConfig
from fetchable_image.fetch import ImageFetcher, ImageFetchError, is_fetchable_url
from fetchable_image.schemas import (
    FailureKind,
    FetchOptions,
    FetchOutcome,
    ImageSource,
    OperationResult,
    resolve_options,
)
from fetchable_image.storage import CacheStore, derive_cache_key

logger = logging.getLogger(__name__)

FetchCompletion = Callable[[bytes | None], None]
BatchItemHandler = Callable[[bytes | None, int], None]
CompletionHandler = Callable[[], None]


class Downloader(Protocol):
    def download(self, url: str) -> bytes: ...


class ImageService:
    """Fetch images from the network or from the local cache.

    An image is downloaded only when it is not found locally (or local storage
    is disabled for the call). Background operations run on ``executor`` and
    report through callbacks and the returned ``Future``. Batch fetches run
    one item at a time, in order.
    """

    def __init__(
        self,
        store: CacheStore,
        fetcher: Downloader,
        *,
        executor: Executor | None = None,
        max_workers: int = 4,
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")

        self.store = store
        self.fetcher = fetcher
        self._owns_executor = executor is None
        self.executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="fetchable-image"
        )

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        *,
        session: requests.Session | None = None,
        executor: Executor | None = None,
    ) -> ImageService:
        store = CacheStore(config.storage.caches_dir, config.storage.documents_dir)
        fetcher = ImageFetcher.from_config(config.http, session=session)
        return cls(
            store,
            fetcher,
            executor=executor,
            max_workers=config.executor.max_workers,
        )

    def __enter__(self) -> ImageService:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_executor:
            self.executor.shutdown(wait=True)

    def local_file_path(
        self, locator: str | None, options: FetchOptions | None = None
    ) -> Path | None:
        opt = resolve_options(options)

        if locator is None:
            if opt.custom_file_name is None:
                return None
            return self.store.resolve(opt.custom_file_name, store_in_caches=opt.store_in_caches)

        key = derive_cache_key(locator)
        if key is None:
            return None
        return self.store.resolve(key, store_in_caches=opt.store_in_caches)

    def load_image(
        self, locator: str | None, options: FetchOptions | None = None
    ) -> FetchOutcome:
        """Load an image from the cache, or download it and cache it.

        Runs on the calling thread. Never raises for I/O or network failures;
        the outcome carries the failure kind instead.
        """
        opt = resolve_options(options)
        path = self.local_file_path(locator, opt)

        if opt.allow_local_storage and path is not None:
            try:
                cached = self.store.exists(path)
            except OSError as exc:
                logger.warning("image_load cache lookup failed path=%s error=%s", path, exc)
                return FetchOutcome.failed(FailureKind.LOCAL_READ_FAILURE, str(exc))
        else:
            cached = False

        if cached:
            try:
                data = self.store.read(path)
            except OSError as exc:
                # No network fallback: the broken entry stays until deleted.
                logger.warning("image_load cache read failed path=%s error=%s", path, exc)
                return FetchOutcome.failed(FailureKind.LOCAL_READ_FAILURE, str(exc))
            logger.info("image_load hit path=%s", path)
            return FetchOutcome(data=data, source=ImageSource.CACHE)

        if locator is None:
            return FetchOutcome.failed(
                FailureKind.NO_LOCATOR, "no url given and no cached file found"
            )
        if not is_fetchable_url(locator):
            logger.warning("image_load skipped reason=malformed_url locator=%r", locator)
            return FetchOutcome.failed(FailureKind.MALFORMED_URL, f"not an http(s) url: {locator!r}")

        try:
            data = self.fetcher.download(locator)
        except ImageFetchError as exc:
            logger.warning("image_load download failed url=%s reason=%s", locator, exc)
            return FetchOutcome.failed(FailureKind.NETWORK_FAILURE, str(exc))

        stored = False
        store_failure = ""
        if opt.allow_local_storage and path is not None:
            try:
                self.store.write(path, data)
                stored = True
            except OSError as exc:
                logger.warning("image_load cache write failed path=%s error=%s", path, exc)
                store_failure = str(exc)

        return FetchOutcome(
            data=data,
            source=ImageSource.NETWORK,
            stored=stored,
            store_failure=store_failure,
        )

    def fetch_image(
        self,
        locator: str | None,
        options: FetchOptions | None = None,
        completion: FetchCompletion | None = None,
    ) -> Future[FetchOutcome]:
        return self.executor.submit(self._fetch_one, locator, options, completion)

    def fetch_batch_images(
        self,
        locators: Sequence[str | None],
        options: FetchOptions | None = None,
        on_item: BatchItemHandler | None = None,
        on_complete: CompletionHandler | None = None,
    ) -> Future[list[FetchOutcome]]:
        return self.executor.submit(
            self._fetch_batch, list(locators), options, on_item, on_complete
        )

    def delete_image_result(
        self, locator: str | None, options: FetchOptions | None = None
    ) -> OperationResult:
        path = self.local_file_path(locator, options)
        if path is None:
            return OperationResult.failed(
                FailureKind.NO_LOCATOR, "no url and no custom_file_name given"
            )
        try:
            if not self.store.exists(path):
                return OperationResult.failed(FailureKind.NOT_FOUND, str(path))
            self.store.delete(path)
        except FileNotFoundError:
            return OperationResult.failed(FailureKind.NOT_FOUND, str(path))
        except OSError as exc:
            logger.warning("image_delete failed path=%s error=%s", path, exc)
            return OperationResult.failed(FailureKind.LOCAL_WRITE_FAILURE, str(exc))
        return OperationResult.succeeded()

    def delete_image(self, locator: str | None, options: FetchOptions | None = None) -> bool:
        return self.delete_image_result(locator, options).ok

    def delete_batch_images(
        self, locators: Sequence[str | None], options: FetchOptions | None = None
    ) -> Future[list[OperationResult]]:
        items = [(locator, options) for locator in locators]
        return self.executor.submit(self._delete_all, items)

    def delete_batch_images_by_options(
        self, option_sets: Sequence[FetchOptions]
    ) -> Future[list[OperationResult]]:
        items = [(None, options) for options in option_sets]
        return self.executor.submit(self._delete_all, items)

    def save_result(self, data: bytes, options: FetchOptions) -> OperationResult:
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise TypeError("data must be bytes-like")

        path = self.local_file_path(None, options)
        if path is None:
            return OperationResult.failed(
                FailureKind.NO_LOCATOR, "custom_file_name is required to save an image"
            )

        try:
            self.store.write(path, bytes(data))
        except OSError as exc:
            logger.warning("image_save failed path=%s error=%s", path, exc)
            return OperationResult.failed(FailureKind.LOCAL_WRITE_FAILURE, str(exc))
        return OperationResult.succeeded()

    def save(self, data: bytes, options: FetchOptions) -> bool:
        return self.save_result(data, options).ok

    def _fetch_one(
        self,
        locator: str | None,
        options: FetchOptions | None,
        completion: FetchCompletion | None,
    ) -> FetchOutcome:
        outcome = self.load_image(locator, options)
        if completion is not None:
            _notify(completion, outcome.data)
        return outcome

    def _fetch_batch(
        self,
        locators: list[str | None],
        options: FetchOptions | None,
        on_item: BatchItemHandler | None,
        on_complete: CompletionHandler | None,
    ) -> list[FetchOutcome]:
        outcomes: list[FetchOutcome] = []
        for index, locator in enumerate(locators):
            outcome = self.load_image(locator, options)
            outcomes.append(outcome)
            if on_item is not None:
                _notify(on_item, outcome.data, index)

        logger.info(
            "image_batch done total=%d ok=%d failed=%d",
            len(outcomes),
            sum(1 for outcome in outcomes if outcome.ok),
            sum(1 for outcome in outcomes if not outcome.ok),
        )
        if on_complete is not None:
            _notify(on_complete)
        return outcomes

    def _delete_all(
        self, items: list[tuple[str | None, FetchOptions | None]]
    ) -> list[OperationResult]:
        results = [self.delete_image_result(locator, options) for locator, options in items]
        logger.info(
            "image_delete_batch done total=%d deleted=%d",
            len(results),
            sum(1 for result in results if result.ok),
        )
        return results


def _notify(callback: Callable[..., Any], *args: Any) -> None:
    try:
        callback(*args)
    except Exception:
        logger.exception("image callback failed callback=%r", callback)
