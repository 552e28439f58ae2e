"""
Terminal Renderer — markdown markup to ANSI-styled, word-wrapped text.

Backed by rich (Console + Markdown). A failed render never reaches the
caller: the renderer falls back to rendering ERROR_PAGE with the same width
and style, so a broken page and a literal "Error 500" page look the same.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from rich.console import Console
from rich.markdown import Markdown
from rich.theme import Theme

log = logging.getLogger("renderer")

UNSPECIFIED_WRAP = -1
DEFAULT_WRAP = 100
PAGE_WRAP = 120

ERROR_PAGE = "# Error 500"


@dataclass(frozen=True)
class RenderStyle:
    name: str
    theme: Theme
    code_theme: str


DARK = RenderStyle(
    name="dark",
    theme=Theme({
        "markdown.h1": "bold bright_white on dark_magenta",
        "markdown.h2": "bold bright_cyan",
        "markdown.h3": "bold cyan",
        "markdown.h4": "bold",
        "markdown.strong": "bold bright_white",
        "markdown.em": "italic",
        "markdown.link": "bright_blue",
        "markdown.link_url": "underline blue",
        "markdown.code": "bold bright_red on grey11",
        "markdown.block_quote": "grey70",
        "markdown.item.bullet": "bright_yellow",
        "markdown.hr": "grey35",
    }),
    code_theme="monokai",
)

LIGHT = RenderStyle(
    name="light",
    theme=Theme({
        "markdown.h1": "bold white on blue",
        "markdown.h2": "bold dark_blue",
        "markdown.h3": "bold blue",
        "markdown.h4": "bold",
        "markdown.strong": "bold black",
        "markdown.em": "italic",
        "markdown.link": "dark_blue",
        "markdown.link_url": "underline blue",
        "markdown.code": "bold red on grey93",
        "markdown.block_quote": "grey35",
        "markdown.item.bullet": "dark_orange",
        "markdown.hr": "grey62",
    }),
    code_theme="friendly",
)

STYLES = {"dark": DARK, "light": LIGHT}


def resolve_wrap(wrap: int) -> int:
    return DEFAULT_WRAP if wrap == UNSPECIFIED_WRAP else wrap


def resolve_style(theme: Optional[str]) -> RenderStyle:
    # Only the exact string "light" selects the light style.
    return LIGHT if theme == "light" else DARK


def rich_markdown(text: str, width: int, style: RenderStyle) -> str:
    console = Console(
        width=width,
        theme=style.theme,
        force_terminal=True,
        color_system="256",
        no_color=False,
        legacy_windows=False,
    )
    with console.capture() as capture:
        console.print(Markdown(text, code_theme=style.code_theme))
    return capture.get()


@dataclass
class RenderResult:
    output: Optional[str] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.output is not None


Backend = Callable[[str, int, RenderStyle], str]


class TerminalRenderer:
    def __init__(self, backend: Backend = rich_markdown) -> None:
        self.backend = backend

    def try_render(self, text: str, width: int, style: RenderStyle) -> RenderResult:
        try:
            return RenderResult(output=self.backend(text, width, style))
        except Exception as e:
            return RenderResult(error=e)

    def render(self, text: str, wrap: int = UNSPECIFIED_WRAP, theme: Optional[str] = None) -> str:
        width = resolve_wrap(wrap)
        style = resolve_style(theme)

        result = self.try_render(text, width, style)
        if result.ok:
            return result.output

        log.error(f"an error occurred during rendering markdown: {result.error}")
        fallback = self.try_render(ERROR_PAGE, width, style)
        if fallback.ok:
            return fallback.output
        log.error(f"fallback error page failed to render: {fallback.error}")
        return ERROR_PAGE + "\n"
