"""Tool descriptors, their handlers and the dispatch boundary.

Every handler takes the browser session and the raw argument dict, does one
operation against the page and returns MCP content. Handlers raise on
failure; ``dispatch`` turns any exception into an ``Error: ...`` text item so
the assistant always gets a readable response.
"""

from __future__ import annotations

import base64
import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from mcp import types
from playwright.async_api import Page

from shakespeare_mcp import config, styles
from shakespeare_mcp.output import UNDEFINED, SizePolicy, default_output_path, govern_output
from shakespeare_mcp.session import BrowserSession

logger = logging.getLogger(__name__)

Content = types.TextContent | types.ImageContent
Handler = Callable[[BrowserSession, dict[str, Any]], Awaitable[list[Content]]]


class ToolInputError(ValueError):
    pass


@dataclass(frozen=True)
class RegisteredTool:
    descriptor: types.Tool
    handler: Handler


def text_content(text: str) -> list[Content]:
    return [types.TextContent(type="text", text=text)]


def text_result(data) -> str:
    """Format structured data as indented JSON."""
    return json.dumps(data, indent=2, ensure_ascii=False)


# ── Argument checks ─────────────────────────────────────────────


def _missing(arguments: dict, name: str) -> bool:
    return arguments.get(name) is None


def _string(arguments: dict, name: str, required: bool = True) -> str | None:
    if _missing(arguments, name):
        if required:
            raise ToolInputError(f"Missing required argument: {name}")
        return None
    value = arguments[name]
    if not isinstance(value, str):
        raise ToolInputError(f"Argument '{name}' must be a string")
    return value


def _number(arguments: dict, name: str, required: bool = True) -> int | float | None:
    if _missing(arguments, name):
        if required:
            raise ToolInputError(f"Missing required argument: {name}")
        return None
    value = arguments[name]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ToolInputError(f"Argument '{name}' must be a number")
    return value


def _pixels(arguments: dict, name: str) -> int:
    value = _number(arguments, name)
    if value != int(value) or value <= 0:
        raise ToolInputError(f"Argument '{name}' must be a positive whole number")
    return int(value)


def _string_list(arguments: dict, name: str, required: bool = True) -> list[str] | None:
    if _missing(arguments, name):
        if required:
            raise ToolInputError(f"Missing required argument: {name}")
        return None
    value = arguments[name]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ToolInputError(f"Argument '{name}' must be an array of strings")
    return value


# ── Handlers ────────────────────────────────────────────────────


async def handle_navigate(session: BrowserSession, arguments: dict) -> list[Content]:
    url = _string(arguments, "url")
    page = await session.ensure()
    await page.goto(url, wait_until="networkidle")
    return text_content(f"Navigated to {url}")


async def handle_screenshot(session: BrowserSession, arguments: dict) -> list[Content]:
    full_page = arguments.get("fullPage")
    if full_page is None:
        full_page = False
    elif not isinstance(full_page, bool):
        raise ToolInputError("Argument 'fullPage' must be a boolean")
    page = await session.ensure()
    png = await page.screenshot(full_page=full_page, type="png")
    return [
        types.ImageContent(
            type="image",
            data=base64.b64encode(png).decode("ascii"),
            mimeType="image/png",
        )
    ]


async def evaluate_script(page: Page, script: str):
    """Evaluate ``script`` and return its JSON value, or ``UNDEFINED``.

    ``page.evaluate`` maps both ``null`` and ``undefined`` to ``None``, so the
    result is kept as a handle long enough to tell them apart.
    """
    handle = await page.evaluate_handle(script)
    try:
        if await handle.evaluate("value => value === undefined"):
            return UNDEFINED
        return await handle.json_value()
    finally:
        await handle.dispose()


async def handle_evaluate(session: BrowserSession, arguments: dict) -> list[Content]:
    script = _string(arguments, "script")
    output_mode = _string(arguments, "output_mode", required=False) or "direct"
    if output_mode not in config.OUTPUT_MODES:
        raise ToolInputError("Argument 'output_mode' must be 'direct' or 'file'")
    output_path = _string(arguments, "output_path", required=False)
    size_limit = _number(arguments, "size_limit", required=False)

    policy = SizePolicy(
        size_limit=size_limit or config.DEFAULT_SIZE_LIMIT,
        output_mode=output_mode,
        output_path=output_path or default_output_path(),
    )
    page = await session.ensure()
    value = await evaluate_script(page, script)
    return text_content(govern_output(value, policy))


async def handle_get_computed_styles(
    session: BrowserSession, arguments: dict
) -> list[Content]:
    selector = _string(arguments, "selector")
    properties = _string_list(arguments, "properties", required=False)
    page = await session.ensure()
    result = await styles.get_computed_styles(page, selector, properties)
    return text_content(text_result(result))


async def handle_query_elements(session: BrowserSession, arguments: dict) -> list[Content]:
    selector = _string(arguments, "selector")
    properties = _string_list(arguments, "properties")
    page = await session.ensure()
    result = await styles.query_elements(page, selector, properties)
    return text_content(text_result(result))


async def handle_set_viewport(session: BrowserSession, arguments: dict) -> list[Content]:
    width = _pixels(arguments, "width")
    height = _pixels(arguments, "height")
    page = await session.ensure()
    await page.set_viewport_size({"width": width, "height": height})
    return text_content(f"Viewport set to {width}x{height}")


async def handle_close_browser(session: BrowserSession, arguments: dict) -> list[Content]:
    await session.close()
    return text_content("Browser closed")


# ── Descriptors ─────────────────────────────────────────────────


TOOL_DESCRIPTORS: list[types.Tool] = [
    types.Tool(
        name="navigate",
        description="Navigate to a URL in the browser",
        inputSchema={
            "type": "object",
            "properties": {
                "url": {"type": "string", "description": "The URL to navigate to"},
            },
            "required": ["url"],
        },
    ),
    types.Tool(
        name="screenshot",
        description="Take a screenshot of the current page",
        inputSchema={
            "type": "object",
            "properties": {
                "fullPage": {
                    "type": "boolean",
                    "description": "Capture full scrollable page",
                    "default": False,
                },
            },
        },
    ),
    types.Tool(
        name="evaluate",
        description="Execute JavaScript in the page context and return the result",
        inputSchema={
            "type": "object",
            "properties": {
                "script": {
                    "type": "string",
                    "description": "JavaScript code to execute",
                },
                "output_mode": {
                    "type": "string",
                    "enum": list(config.OUTPUT_MODES),
                    "description": (
                        "Output handling mode: direct (return immediately), "
                        "file (write to disk)"
                    ),
                    "default": "direct",
                },
                "output_path": {
                    "type": "string",
                    "description": (
                        "File path for output when using file mode. "
                        "Defaults to temp directory if not specified."
                    ),
                },
                "size_limit": {
                    "type": "number",
                    "description": (
                        "Character limit before forcing file output "
                        f"(default: {config.DEFAULT_SIZE_LIMIT}, ~25% of context)"
                    ),
                    "default": config.DEFAULT_SIZE_LIMIT,
                },
            },
            "required": ["script"],
        },
    ),
    types.Tool(
        name="get_computed_styles",
        description="Get computed CSS styles for an element",
        inputSchema={
            "type": "object",
            "properties": {
                "selector": {
                    "type": "string",
                    "description": "CSS selector for the element",
                },
                "properties": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": (
                        "Optional array of specific CSS properties to retrieve. "
                        "If not provided, returns all computed styles."
                    ),
                },
            },
            "required": ["selector"],
        },
    ),
    types.Tool(
        name="query_elements",
        description="Query elements and get their computed styles",
        inputSchema={
            "type": "object",
            "properties": {
                "selector": {"type": "string", "description": "CSS selector to query"},
                "properties": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "CSS properties to retrieve for each element",
                },
            },
            "required": ["selector", "properties"],
        },
    ),
    types.Tool(
        name="set_viewport",
        description="Set the viewport size for responsive testing",
        inputSchema={
            "type": "object",
            "properties": {
                "width": {"type": "number", "description": "Viewport width in pixels"},
                "height": {"type": "number", "description": "Viewport height in pixels"},
            },
            "required": ["width", "height"],
        },
    ),
    types.Tool(
        name="close_browser",
        description="Close the browser instance",
        inputSchema={"type": "object", "properties": {}},
    ),
]

_HANDLERS: dict[str, Handler] = {
    "navigate": handle_navigate,
    "screenshot": handle_screenshot,
    "evaluate": handle_evaluate,
    "get_computed_styles": handle_get_computed_styles,
    "query_elements": handle_query_elements,
    "set_viewport": handle_set_viewport,
    "close_browser": handle_close_browser,
}


def build_registry(
    descriptors: list[types.Tool], handlers: dict[str, Handler]
) -> dict[str, RegisteredTool]:
    """Pair each descriptor with its handler; both sets must match exactly."""
    names = [d.name for d in descriptors]
    if len(set(names)) != len(names) or set(names) != set(handlers):
        raise RuntimeError(
            f"Tool descriptors {sorted(names)} do not match handlers {sorted(handlers)}"
        )
    return {d.name: RegisteredTool(d, handlers[d.name]) for d in descriptors}


TOOLS = build_registry(TOOL_DESCRIPTORS, _HANDLERS)


# ── Dispatch ────────────────────────────────────────────────────


async def dispatch(
    session: BrowserSession, name: str, arguments: dict[str, Any] | None
) -> list[Content]:
    """Run one tool call. Never raises; failures come back as error text."""
    tool = TOOLS.get(name)
    if tool is None:
        return text_content(f"Error: Unknown tool: {name}")

    logger.debug("Tool call: %s %s", name, arguments)
    async with session.lock:
        try:
            return await tool.handler(session, arguments or {})
        except Exception as exc:
            logger.exception("Tool %s failed", name)
            return text_content(f"Error: {exc}")
