"""Selectors and locator fallback chains for Garmin Connect pages."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Tuple


@dataclass(frozen=True)
class LocatorSpec:
    """A single Playwright selector plus a short label used in log lines."""

    selector: str
    label: str = ""

    def __str__(self) -> str:
        return self.label or self.selector


@dataclass(frozen=True)
class SelectorChain:
    """Ordered, immutable locator candidates for one logical UI control."""

    name: str
    candidates: Tuple[LocatorSpec, ...]

    def __iter__(self) -> Iterator[LocatorSpec]:
        return iter(self.candidates)

    def __len__(self) -> int:
        return len(self.candidates)


def chain(name: str, *selectors: str) -> SelectorChain:
    """Build a ``SelectorChain`` from plain selector strings in priority order."""

    return SelectorChain(
        name=name,
        candidates=tuple(
            LocatorSpec(selector=sel, label=f"{name}[{idx}]")
            for idx, sel in enumerate(selectors)
        ),
    )


@dataclass(frozen=True)
class GarminSelectors:
    """Selector hints for the Garmin Connect activity pages.

    The gear ("options") button on the activity detail page has shipped under
    several markup shapes, so it is expressed as a fallback chain. The login
    form and the list items have been stable enough to keep as single
    selectors.
    """

    email_input: str = "input#email"
    password_input: str = "input#password"
    submit_button: str = "button[type='submit']"
    list_item: str = "[class*='ActivityListItem_listItem']"
    export_csv_text: str = "Export CSV"
    export_splits_text: str = "Export Splits to CSV"
    detail_href_pattern: str = r"/modern/activity/(\d+)"
    debug_container: str = "[class*='ActivityHeader'], .page-navigation, #pageContainer"
    options_menu: SelectorChain = chain(
        "options_menu",
        "button[aria-label='Toggle Menu']",
        "button[aria-label*='Settings' i]",
        "button[aria-label*='More' i]",
        "[class*='SettingsMenu'] button",
        "[class*='dropdown'] button:has(i[class*='icon-gear'])",
        "button:has(i.icon-gear)",
        "button:has([class*='gear' i])",
        "a.page-navigation-action:has(i.icon-gear)",
        "[data-toggle='dropdown']:has([class*='gear' i])",
    )


GARMIN_SELECTORS = GarminSelectors()

__all__ = [
    "LocatorSpec",
    "SelectorChain",
    "GarminSelectors",
    "GARMIN_SELECTORS",
    "chain",
]
