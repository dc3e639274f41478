"""
Reconciliation engine.

Decides whether a desired image is already in the store and brings the
store's tag bindings in line with the desired tags. The decision runs in two
phases:

1. Strict probe: inspect the store by the desired digest.
2. Loose probe: inspect the store by the first desired tag and accept the
   image it resolves to if its config is semantically equal to the desired
   config, even though its digest differs.

When either phase finds the image, tag reconciliation runs against it and
the ledger reports already_loaded=True. When neither does, the caller must
load the archive and then call reconcile_tags() with the desired digest.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from .action import LoadAction
from .compare import configs_equal, describe_config_mismatch
from .deadline import Deadline
from .errors import (
    ImageNotFound,
    ImageVanishedError,
    LoaderError,
    StoreTimeout,
    StoreTransportError,
    TagApplicationError,
)
from .models import DesiredImage
from .store.base import ImageStore

logger = logging.getLogger(__name__)

__all__ = ["ReconciliationEngine", "LookupResult"]


@dataclass(frozen=True)
class LookupResult:
    """
    Outcome of the two-phase existence check.

    found=False means a full load is required; the action then carries only
    the desired digest.
    """
    found: bool
    action: LoadAction


class ReconciliationEngine:
    """
    Two-phase image lookup plus tag reconciliation against an ImageStore.

    The engine keeps no state between calls. Every phase re-reads the store
    because other processes may change it at any time.
    """

    def __init__(self, store: ImageStore):
        self.store = store

    def check_image_exists(self, desired: DesiredImage, deadline: Deadline) -> LookupResult:
        """
        Find the desired image by digest, or by first tag plus config equality.

        If found, missing tags are applied before returning.

        Args:
            desired: Desired image state
            deadline: Deadline for all store calls made here

        Returns:
            LookupResult; when found, its action has already_loaded=True and
            a fully partitioned tag list

        Raises:
            StoreTransportError: If the strict probe fails for any reason other
                than not-found
            StoreTimeout: If the deadline expires
            TagApplicationError: If applying a missing tag fails
            ImageVanishedError: If the found image disappears before tagging
        """
        action = LoadAction(digest=desired.digest)

        if self._strict_probe(desired.digest, deadline):
            logger.info(f"Image {desired.digest} already present in store")
            action = action.mark_loaded(desired.digest)
            action = self.reconcile_tags(desired.digest, desired.repo_tags, action, deadline)
            return LookupResult(found=True, action=action)

        resolved_id = self._loose_probe(desired, deadline)
        if resolved_id is not None:
            logger.info(
                f"Found existing image {resolved_id} with matching config "
                f"(ID mismatch with {desired.digest} ignored)"
            )
            action = action.mark_loaded(resolved_id)
            action = self.reconcile_tags(resolved_id, desired.repo_tags, action, deadline)
            return LookupResult(found=True, action=action)

        return LookupResult(found=False, action=action)

    def _strict_probe(self, digest: str, deadline: Deadline) -> bool:
        try:
            self.store.inspect(digest, deadline)
        except ImageNotFound:
            logger.debug(f"No image with ID {digest}")
            return False
        except StoreTimeout:
            raise
        except StoreTransportError as e:
            raise StoreTransportError(f"error inspecting image ID {digest}: {e}") from e
        return True

    def _loose_probe(self, desired: DesiredImage, deadline: Deadline) -> Optional[str]:
        """Return the id of a config-equal image under the first tag, or None."""
        if not desired.repo_tags:
            logger.debug("No repo tags to probe; image must be loaded")
            return None

        first_tag = desired.repo_tags[0]
        try:
            candidate = self.store.inspect(first_tag, deadline)
        except ImageNotFound:
            logger.debug(f"No image tagged {first_tag}")
            return None
        except StoreTimeout:
            raise
        except StoreTransportError as e:
            logger.warning(f"Error inspecting existing tag {first_tag}: {e}")
            return None

        if not configs_equal(desired.config, candidate):
            mismatched = ", ".join(describe_config_mismatch(desired.config, candidate))
            logger.info(f"Existing image tag {first_tag} found but config does not match ({mismatched})")
            return None

        return candidate.id

    def reconcile_tags(
        self,
        image_id: str,
        repo_tags: Sequence[str],
        action: LoadAction,
        deadline: Deadline,
    ) -> LoadAction:
        """
        Make sure `image_id` carries every tag in `repo_tags`.

        The image's current tags are re-read from the store first. Tags are
        then classified in input order: those already bound are recorded as
        present, the rest are applied one at a time and recorded as added.
        Duplicate entries are classified independently.

        Args:
            image_id: Image to tag
            repo_tags: Desired tags, in order
            action: Ledger to extend
            deadline: Deadline for all store calls made here

        Returns:
            A new ledger with the tag outcome appended

        Raises:
            ImageVanishedError: If the image is not in the store
            TagApplicationError: On the first tag that fails; carries the
                partial ledger up to (not including) that tag
            StoreTransportError: If re-reading the image fails
            StoreTimeout: If the deadline expires or is cancelled at any point
        """
        try:
            current = self.store.inspect(image_id, deadline)
        except ImageNotFound as e:
            raise ImageVanishedError(image_id) from e

        present = set(current.repo_tags)
        for tag in repo_tags:
            if tag in present:
                logger.debug(f"Image {image_id} already tagged with {tag}")
                action = action.with_tag_present(tag)
                continue

            try:
                self.store.tag(image_id, tag, deadline)
            except StoreTimeout:
                raise
            except LoaderError as e:
                raise TagApplicationError(
                    f"error tagging image {image_id} as {tag}: {e}",
                    tag=tag,
                    partial_action=action,
                ) from e
            logger.info(f"Tagged image {image_id} with {tag}")
            action = action.with_tag_added(tag)

        return action
