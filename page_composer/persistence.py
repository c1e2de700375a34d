"""Multi-request save, load, and delete protocols against the remote store.

Saving a composition is not a single request. The coordinator runs the steps
strictly in sequence because each one depends on identifiers or state produced
by the previous one:

1. ``UpsertPage`` creates the page record (first save) or updates it.
2. ``ClearStaleLinks`` deletes the page's existing join records (update path
   only) so the new link set does not duplicate or orphan rows.
3. ``CreateLinks`` writes one join record per placed section, carrying the
   section's 1-based position as ``sort_order``.

The create-link endpoint sometimes answers with a server error carrying a
known diagnostic marker even though it committed the row. For that signature
only, the coordinator re-queries the join records once and treats a matching
``(page_id, section_id, sort_order)`` row as success. Partial link sets are
left in the store; the caller decides whether to retry the whole save.

Example
-------
>>> from page_composer.persistence import PersistenceCoordinator
>>> from page_composer.store import RemoteStore
>>> coordinator = PersistenceCoordinator(RemoteStore())  # doctest: +SKIP
>>> result = coordinator.save(metadata, composition.list())  # doctest: +SKIP
>>> result.links_written == result.total  # doctest: +SKIP
True
"""

from __future__ import annotations

import dataclasses as dc
import logging
import re
import typing as typ

from .errors import (
    BackendInconsistency,
    PartialSaveError,
    SaveStep,
    StoreRequestError,
    TransportError,
    ValidationError,
)
from .styles import merge_styles

if typ.TYPE_CHECKING:
    from .models import (
        PageMetadata,
        PageRecord,
        PageSectionLink,
        PlacedSection,
        RecordId,
        Section,
        SectionDraft,
    )
    from .store import RemoteStore

logger = logging.getLogger(__name__)

_URL_SAFE_SLUG = re.compile(r"[A-Za-z0-9._~-]+")
_SLUG_SEPARATORS = re.compile(r"[^a-z0-9]+")


@dc.dataclass(slots=True)
class SaveResult:
    """Outcome of a fully successful save.

    Attributes
    ----------
    page_id : RecordId
        Identifier of the saved page.
    created : bool
        ``True`` when this save created the page record.
    links_written : int
        Join records confirmed written (directly or after verification).
    total : int
        Number of placed sections submitted.
    stale_links_removed : int
        Join records deleted during ``ClearStaleLinks``.
    verified_after_defect : int
        Links whose create reported the defect but were found on re-query.
    """

    page_id: RecordId
    created: bool
    links_written: int
    total: int
    stale_links_removed: int = 0
    verified_after_defect: int = 0


@dc.dataclass(slots=True)
class LoadedPage:
    """Page metadata plus its sections in stored order."""

    page: PageRecord
    sections: list[Section]
    skipped: list[PageSectionLink] = dc.field(default_factory=list)


def is_url_safe_slug(slug: str) -> bool:
    """Return True when ``slug`` only uses unreserved URL characters."""
    return _URL_SAFE_SLUG.fullmatch(slug) is not None


def slugify(text: str) -> str:
    """Derive a lowercase, hyphen-separated slug from free text."""
    return _SLUG_SEPARATORS.sub("-", text.lower()).strip("-")


def validate_composition(
    metadata: PageMetadata, placed: typ.Sequence[PlacedSection]
) -> None:
    """Raise :class:`ValidationError` when a save must not be attempted."""
    problems: list[str] = []
    if not metadata.title.strip():
        problems.append("Page title is required")
    slug = metadata.slug.strip()
    if not slug:
        problems.append("Page slug is required")
    elif not is_url_safe_slug(slug):
        problems.append(
            f"Page slug {slug!r} must only contain letters, digits, '-', '.', '_' or '~'"
        )
    if not placed:
        problems.append("Add at least one section to the page")
    if problems:
        raise ValidationError(problems)


def validate_section_draft(draft: SectionDraft) -> None:
    problems: list[str] = []
    if not draft.name.strip():
        problems.append("Section name is required")
    if not draft.component_key.strip():
        problems.append("Section component key is required")
    if problems:
        raise ValidationError(problems)


class PersistenceCoordinator:
    """Run the save/load/delete protocols against a :class:`RemoteStore`."""

    def __init__(self, store: RemoteStore) -> None:
        self.store = store

    # save

    def save(
        self, metadata: PageMetadata, placed: typ.Sequence[PlacedSection]
    ) -> SaveResult:
        """Persist ``metadata`` and the ordered ``placed`` sections.

        ``metadata.page_id`` is bound after the first successful page create
        and stays bound even when a later step fails, so a retry takes the
        update path.

        Raises
        ------
        ValidationError
            Before any request when title, slug, or sections are missing.
        TransportError
            When ``UpsertPage`` or ``ClearStaleLinks`` fails.
        PartialSaveError
            When fewer than all join records could be written.
        """
        placed = tuple(placed)
        validate_composition(metadata, placed)

        created = metadata.page_id is None
        page_id = self._upsert_page(metadata, placed)
        removed = 0 if created else self._clear_stale_links(page_id)
        written, verified = self._create_links(page_id, placed)

        total = len(placed)
        if written < total:
            logger.error(
                "Saved %d of %d links for page %s; store left partially written",
                written,
                total,
                page_id,
            )
            raise PartialSaveError(page_id=page_id, succeeded=written, total=total)

        logger.info(
            "Page %s %s with %d sections",
            page_id,
            "created" if created else "updated",
            total,
        )
        return SaveResult(
            page_id=page_id,
            created=created,
            links_written=written,
            total=total,
            stale_links_removed=removed,
            verified_after_defect=verified,
        )

    def _upsert_page(
        self, metadata: PageMetadata, placed: typ.Sequence[PlacedSection]
    ) -> RecordId:
        fields = {
            "title": metadata.title.strip(),
            "slug": metadata.slug.strip(),
            "meta_description": metadata.meta_description,
            "combined_html": "\n".join(p.section.template_html for p in placed),
            "combined_css": merge_styles(p.section.template_css for p in placed),
        }
        logger.info("%s: %s", SaveStep.UPSERT_PAGE, fields["slug"])
        try:
            if metadata.page_id is None:
                record = self.store.create_page(fields)
                metadata.page_id = record.id
            else:
                self.store.update_page(metadata.page_id, fields)
        except (StoreRequestError, ValueError) as exc:
            raise TransportError(SaveStep.UPSERT_PAGE, str(exc)) from exc
        return metadata.page_id

    def _clear_stale_links(self, page_id: RecordId) -> int:
        logger.info("%s: page %s", SaveStep.CLEAR_STALE_LINKS, page_id)
        try:
            return self._delete_links_for(page_id)
        except StoreRequestError as exc:
            raise TransportError(SaveStep.CLEAR_STALE_LINKS, str(exc)) from exc

    def _create_links(
        self, page_id: RecordId, placed: typ.Sequence[PlacedSection]
    ) -> tuple[int, int]:
        """Write one link per item; return ``(written, verified_after_defect)``."""
        written = 0
        verified = 0
        for position, item in enumerate(placed, start=1):
            section_id = item.source_section_id
            logger.info(
                "%s: page %s section %s at %d",
                SaveStep.CREATE_LINKS,
                page_id,
                section_id,
                position,
            )
            try:
                self.store.create_page_section(
                    page_id=page_id, section_id=section_id, sort_order=position
                )
            except BackendInconsistency as exc:
                if self._link_exists(page_id, section_id, position):
                    logger.warning(
                        "Link for section %s at %d reported %s but was committed",
                        section_id,
                        position,
                        exc.status_code,
                    )
                    written += 1
                    verified += 1
                else:
                    logger.error(
                        "Link for section %s at %d failed and was not committed: %s",
                        section_id,
                        position,
                        exc,
                    )
                continue
            except StoreRequestError as exc:
                logger.error(
                    "Link for section %s at %d failed: %s", section_id, position, exc
                )
                continue
            written += 1
        return written, verified

    def _link_exists(
        self, page_id: RecordId, section_id: RecordId, sort_order: int
    ) -> bool:
        try:
            links = self.store.list_page_sections()
        except StoreRequestError as exc:
            logger.error("Verification re-query failed: %s", exc)
            return False
        return any(
            link.matches(page_id=page_id, section_id=section_id, sort_order=sort_order)
            for link in links
        )

    def _delete_links_for(self, page_id: RecordId) -> int:
        links = [
            link for link in self.store.list_page_sections() if link.belongs_to(page_id)
        ]
        for link in links:
            self.store.delete_page_section(link.id)
        return len(links)

    # load

    def load(self, page_id: RecordId) -> LoadedPage:
        """Fetch a page and its sections ordered by stored position.

        Sections that can no longer be fetched are logged and skipped so one
        missing section does not block the rest of the page.

        Raises
        ------
        TransportError
            When the page itself or the join records cannot be fetched.
        """
        try:
            page = self.store.get_page(page_id)
        except (StoreRequestError, ValueError) as exc:
            raise TransportError(SaveStep.FETCH_PAGE, str(exc)) from exc

        try:
            links = [
                link
                for link in self.store.list_page_sections()
                if link.belongs_to(page.id)
            ]
        except StoreRequestError as exc:
            raise TransportError(SaveStep.FETCH_LINKS, str(exc)) from exc

        links.sort(key=lambda link: link.sort_order)
        sections: list[Section] = []
        skipped: list[PageSectionLink] = []
        for link in links:
            try:
                sections.append(self.store.get_section(link.section_id))
            except (StoreRequestError, ValueError) as exc:
                logger.warning(
                    "Skipping section %s of page %s: %s",
                    link.section_id,
                    page.id,
                    exc,
                )
                skipped.append(link)
        logger.info(
            "Loaded page %s with %d sections (%d skipped)",
            page.id,
            len(sections),
            len(skipped),
        )
        return LoadedPage(page=page, sections=sections, skipped=skipped)

    # delete

    def delete_page(self, page_id: RecordId) -> int:
        """Delete the page's join records, then the page; return links removed.

        A failure after some links were deleted is not rolled back.
        """
        try:
            removed = self._delete_links_for(page_id)
        except StoreRequestError as exc:
            raise TransportError(SaveStep.DELETE_LINKS, str(exc)) from exc
        try:
            self.store.delete_page(page_id)
        except StoreRequestError as exc:
            raise TransportError(SaveStep.DELETE_PAGE, str(exc)) from exc
        logger.info("Deleted page %s and %d links", page_id, removed)
        return removed

    # sections

    def save_section(
        self, draft: SectionDraft, section_id: RecordId | None = None
    ) -> Section:
        """Create a section, or update ``section_id`` when given."""
        validate_section_draft(draft)
        try:
            if section_id is None:
                section = self.store.create_section(draft)
            else:
                section = self.store.update_section(section_id, draft)
        except (StoreRequestError, ValueError) as exc:
            raise TransportError(SaveStep.SAVE_SECTION, str(exc)) from exc
        logger.info("Saved section %s (%s)", section.id, section.component_key)
        return section


__all__ = [
    "LoadedPage",
    "PersistenceCoordinator",
    "SaveResult",
    "is_url_safe_slug",
    "slugify",
    "validate_composition",
    "validate_section_draft",
]
