"""
Operations Facade - Application service layer.

Provides a clean interface between CLI and the reconciliation engine,
centralizing workflow orchestration, deadlines and timing while keeping
CLI commands thin and testable.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import List, Optional, Union

from ..action import LoadAction
from ..archive import ArchiveLoader
from ..deadline import Deadline
from ..models import DesiredImage, ImageDescriptor
from ..reconcile import LookupResult, ReconciliationEngine
from ..settings import Settings
from ..store.base import ImageStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OpsConfig:
    """
    Configuration for Operations facade.

    Centralizes output and deadline policy to avoid scattered configuration.
    """
    output: str = "human"              # "human" or "json"
    timeout_s: Optional[float] = None  # Overrides Settings.timeout_s when set

    def __post_init__(self):
        if self.output not in ("human", "json"):
            raise ValueError(f"Unknown output format '{self.output}'. Use 'human' or 'json'")
        if self.timeout_s is not None and self.timeout_s <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout_s}")


class Operations:
    """
    Application service facade for CLI operations.

    Owns the load workflow: two-phase lookup, full load when needed, tag
    reconciliation against the freshly loaded image, and the elapsed-time
    stamp on the returned ledger. The store is injected so the whole flow
    runs unchanged against the in-memory fake.
    """

    def __init__(self, config: OpsConfig, store: ImageStore, settings: Optional[Settings] = None):
        """
        Initialize Operations facade.

        Args:
            config: Configuration settings
            store: Image store to reconcile against
            settings: Optional settings (if None, loaded from environment)
        """
        self.cfg = config
        self.store = store

        if settings is None:
            from ..settings import create_settings_from_env
            settings = create_settings_from_env()
        self.settings = settings

        self.engine = ReconciliationEngine(store)
        self.loader = ArchiveLoader(store)

    def new_deadline(self) -> Deadline:
        """Deadline for one workflow, from config or settings."""
        timeout = self.cfg.timeout_s if self.cfg.timeout_s is not None else self.settings.timeout_s
        return Deadline.after(timeout)

    def load(
        self,
        desired: DesiredImage,
        archive_path: Union[str, Path],
        deadline: Optional[Deadline] = None,
    ) -> LoadAction:
        """
        Ensure the desired image is in the store and carries the desired tags.

        Args:
            desired: Desired image state
            archive_path: Image tarball to load if the image is missing
            deadline: Deadline for the whole workflow (default: from config)

        Returns:
            Finalized LoadAction describing what was done

        Raises:
            LoaderError subclasses; any partial ledger must not be trusted
        """
        start = time.monotonic()
        deadline = deadline or self.new_deadline()

        logger.info(f"Checking for image ID: {desired.digest}")
        lookup = self.engine.check_image_exists(desired, deadline)
        if lookup.found:
            return lookup.action.finalize(timedelta(seconds=time.monotonic() - start))

        logger.info(f"Image {desired.digest} not in store; loading {archive_path}")
        self.loader.load(archive_path, deadline)

        action = self.engine.reconcile_tags(
            desired.digest,
            desired.repo_tags,
            LoadAction(digest=desired.digest),
            deadline,
        )
        return action.finalize(timedelta(seconds=time.monotonic() - start))

    def check(self, desired: DesiredImage, deadline: Optional[Deadline] = None) -> LookupResult:
        """
        Run the two-phase lookup without loading.

        A found image still gets its missing tags applied, so the result is
        the same ledger load() would return for it.
        """
        start = time.monotonic()
        deadline = deadline or self.new_deadline()

        lookup = self.engine.check_image_exists(desired, deadline)
        return LookupResult(
            found=lookup.found,
            action=lookup.action.finalize(timedelta(seconds=time.monotonic() - start)),
        )

    def images(self, deadline: Optional[Deadline] = None) -> List[ImageDescriptor]:
        """List the images currently in the store."""
        return self.store.list_images(deadline or self.new_deadline())
