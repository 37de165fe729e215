"""Merge a decoded backup into the live store without duplicating data.

Each entity type has its own named matching strategy. Matching is
conservative: a match means the existing entity wins and the incoming
one is skipped, never merged field by field.

Known false positives and negatives:

* products: two different foods sharing a name and brand (both may be
  absent) are treated as one; a renamed product is treated as new.
* food entries: two distinct entries logged within the same second with the
  same calorie count are treated as one.
* supplement entries: two intakes of the same amount within the same second
  are treated as one.
* templates: names differing only in case are treated as one.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from datetime import timedelta, tzinfo
from typing import TypeVar
from uuid import UUID, uuid4

from calorie_tracker.domain.backup import EntityCounts, ImportSummary
from calorie_tracker.domain.calendar import same_day, start_of_day
from calorie_tracker.domain.models import (
    AIFoodTemplate,
    DailyLog,
    EntityGraph,
    FoodEntry,
    Product,
    Supplement,
    SupplementEntry,
)

ENTRY_TIMESTAMP_TOLERANCE = timedelta(seconds=1)

_logger = logging.getLogger(__name__)

_T = TypeVar(
    "_T", Product, Supplement, DailyLog, FoodEntry, SupplementEntry, AIFoodTemplate
)


def match_product(incoming: Product, candidates: Iterable[Product]) -> Product | None:
    """Find a product by barcode, falling back to exact name and brand."""
    candidates = list(candidates)
    if incoming.barcode:
        for candidate in candidates:
            if candidate.barcode == incoming.barcode:
                return candidate
    for candidate in candidates:
        if candidate.name == incoming.name and candidate.brand == incoming.brand:
            return candidate
    return None


def match_supplement(
    incoming: Supplement, candidates: Iterable[Supplement]
) -> Supplement | None:
    """Find a supplement by exact name and brand."""
    for candidate in candidates:
        if candidate.name == incoming.name and candidate.brand == incoming.brand:
            return candidate
    return None


def match_daily_log(
    incoming: DailyLog, candidates: Iterable[DailyLog], tz: tzinfo
) -> DailyLog | None:
    """Find the daily log for the same local calendar day."""
    for candidate in candidates:
        if same_day(candidate.date, incoming.date, tz):
            return candidate
    return None


def match_food_entry(
    incoming: FoodEntry,
    candidates: Iterable[FoodEntry],
    tolerance: timedelta = ENTRY_TIMESTAMP_TOLERANCE,
) -> FoodEntry | None:
    """Find an entry logged within ``tolerance`` with identical calories."""
    for candidate in candidates:
        if (
            abs(candidate.timestamp - incoming.timestamp) <= tolerance
            and candidate.snapshot.calories == incoming.snapshot.calories
        ):
            return candidate
    return None


def match_supplement_entry(
    incoming: SupplementEntry,
    candidates: Iterable[SupplementEntry],
    tolerance: timedelta = ENTRY_TIMESTAMP_TOLERANCE,
) -> SupplementEntry | None:
    """Find a supplement entry logged within ``tolerance`` with the same amount."""
    for candidate in candidates:
        if (
            abs(candidate.timestamp - incoming.timestamp) <= tolerance
            and candidate.amount == incoming.amount
        ):
            return candidate
    return None


def match_template(
    incoming: AIFoodTemplate, candidates: Iterable[AIFoodTemplate]
) -> AIFoodTemplate | None:
    """Find a template whose name matches ignoring case."""
    name = incoming.name.casefold()
    for candidate in candidates:
        if candidate.name.casefold() == name:
            return candidate
    return None


@dataclass
class ImportPlan:
    """Entities to create and the counts that describe the merge."""

    created: EntityGraph
    summary: ImportSummary
    product_ids: dict[UUID, UUID] = field(default_factory=dict)
    supplement_ids: dict[UUID, UUID] = field(default_factory=dict)
    daily_log_ids: dict[UUID, UUID] = field(default_factory=dict)


@dataclass
class ImportReconciler:
    """Plans the merge of an incoming entity graph into an existing one.

    Stages run in dependency order: products and supplements, then daily
    logs, then entries, then templates. Later stages resolve foreign keys
    through the id maps built by earlier ones.
    """

    timezone: tzinfo
    entry_tolerance: timedelta = ENTRY_TIMESTAMP_TOLERANCE

    def reconcile(self, existing: EntityGraph, incoming: EntityGraph) -> ImportPlan:
        """Return what must be created to merge ``incoming`` into ``existing``."""
        summary = ImportSummary()
        created = EntityGraph()
        plan = ImportPlan(created=created, summary=summary)

        products = list(existing.products)
        plan.product_ids = _merge(
            incoming.products,
            products,
            match_product,
            lambda product: product,
            created.products,
            summary.products,
        )

        supplements = list(existing.supplements)
        plan.supplement_ids = _merge(
            incoming.supplements,
            supplements,
            match_supplement,
            lambda supplement: supplement,
            created.supplements,
            summary.supplements,
        )

        plan.daily_log_ids = _merge(
            incoming.daily_logs,
            list(existing.daily_logs),
            lambda daily_log, known: match_daily_log(daily_log, known, self.timezone),
            lambda daily_log: replace(
                daily_log, date=start_of_day(daily_log.date, self.timezone)
            ),
            created.daily_logs,
            summary.daily_logs,
        )

        product_names = {product.id: product.name for product in products}

        def adopt_food_entry(entry: FoodEntry) -> FoodEntry:
            product_id = self._remap(entry.product_id, plan.product_ids, summary)
            product_name = entry.product_name
            if product_name is None and product_id is not None:
                product_name = product_names.get(product_id)
            return replace(
                entry,
                product_id=product_id,
                product_name=product_name,
                daily_log_id=self._remap(
                    entry.daily_log_id, plan.daily_log_ids, summary
                ),
            )

        _merge(
            incoming.food_entries,
            list(existing.food_entries),
            lambda entry, known: match_food_entry(entry, known, self.entry_tolerance),
            adopt_food_entry,
            created.food_entries,
            summary.food_entries,
        )

        supplement_names = {item.id: item.name for item in supplements}

        def adopt_supplement_entry(entry: SupplementEntry) -> SupplementEntry:
            supplement_id = self._remap(
                entry.supplement_id, plan.supplement_ids, summary
            )
            supplement_name = entry.supplement_name
            if supplement_name is None and supplement_id is not None:
                supplement_name = supplement_names.get(supplement_id)
            return replace(
                entry,
                supplement_id=supplement_id,
                supplement_name=supplement_name,
                daily_log_id=self._remap(
                    entry.daily_log_id, plan.daily_log_ids, summary
                ),
            )

        _merge(
            incoming.supplement_entries,
            list(existing.supplement_entries),
            lambda entry, known: match_supplement_entry(
                entry, known, self.entry_tolerance
            ),
            adopt_supplement_entry,
            created.supplement_entries,
            summary.supplement_entries,
        )

        _merge(
            incoming.templates,
            list(existing.templates),
            match_template,
            lambda template: template,
            created.templates,
            summary.templates,
        )
        return plan

    @staticmethod
    def _remap(
        ref: UUID | None, id_map: dict[UUID, UUID], summary: ImportSummary
    ) -> UUID | None:
        """Resolve a foreign key through ``id_map``; unknown keys are dropped."""
        if ref is None:
            return None
        resolved = id_map.get(ref)
        if resolved is None:
            summary.dropped_references += 1
            _logger.debug("Dropping reference to unknown entity %s", ref)
        return resolved


def _merge(  # noqa: PLR0913
    incoming: list[_T],
    known: list[_T],
    matcher: Callable[[_T, list[_T]], _T | None],
    adopt: Callable[[_T], _T],
    created: list[_T],
    counts: EntityCounts,
) -> dict[UUID, UUID]:
    """Skip matched entities, plan the rest, and map incoming ids to live ids.

    ``known`` grows with every planned entity so duplicates inside the same
    document collapse onto the first occurrence.
    """
    id_map: dict[UUID, UUID] = {}
    taken = {item.id for item in known}
    for item in incoming:
        match = matcher(item, known)
        if match is not None:
            id_map[item.id] = match.id
            counts.skipped += 1
            continue
        adopted = adopt(item)
        if adopted.id in taken:
            adopted = replace(adopted, id=uuid4())
        id_map[item.id] = adopted.id
        taken.add(adopted.id)
        known.append(adopted)
        created.append(adopted)
        counts.imported += 1
    return id_map
