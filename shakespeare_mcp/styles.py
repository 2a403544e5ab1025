"""Computed-style queries run inside the page.

The browser does all cascade resolution; these helpers only pick the
elements, read ``getComputedStyle`` and reshape the result.
"""

from __future__ import annotations

from typing import Any

from playwright.async_api import Page

# Returns null when nothing matches so the caller can raise a clean error.
_COMPUTED_STYLES_JS = """
({ selector, properties }) => {
  const element = document.querySelector(selector);
  if (!element) {
    return null;
  }
  const computed = getComputedStyle(element);
  if (properties && properties.length > 0) {
    const styles = {};
    for (const prop of properties) {
      styles[prop] = computed[prop] ?? null;
    }
    return styles;
  }
  return Object.fromEntries(
    Array.from(computed).map((key) => [key, computed.getPropertyValue(key)])
  );
}
"""

_QUERY_ELEMENTS_JS = """
({ selector, properties }) => {
  return Array.from(document.querySelectorAll(selector)).map((element, index) => {
    const computed = getComputedStyle(element);
    const styles = {};
    for (const prop of properties) {
      styles[prop] = computed[prop] ?? null;
    }
    return {
      index,
      tag: element.tagName,
      id: element.id || "",
      classes: Array.from(element.classList),
      styles,
    };
  });
}
"""


class ElementNotFound(LookupError):
    pass


def describe_element(tag: str, element_id: str = "", classes=()) -> str:
    """Build a readable locator such as ``div#main.card.wide``."""
    locator = tag.lower()
    if element_id:
        locator += f"#{element_id}"
    for name in classes:
        locator += f".{name}"
    return locator


async def get_computed_styles(
    page: Page, selector: str, properties: list[str] | None = None
) -> dict[str, Any]:
    styles = await page.evaluate(
        _COMPUTED_STYLES_JS, {"selector": selector, "properties": properties or []}
    )
    if styles is None:
        raise ElementNotFound(f"Element not found: {selector}")
    return styles


async def query_elements(
    page: Page, selector: str, properties: list[str]
) -> list[dict[str, Any]]:
    """Return one style record per match, in document order."""
    matches = await page.evaluate(
        _QUERY_ELEMENTS_JS, {"selector": selector, "properties": properties}
    )
    return [
        {
            "index": match["index"],
            "selector": describe_element(match["tag"], match["id"], match["classes"]),
            "styles": match["styles"],
        }
        for match in matches
    ]
