"""Frame composition for the picker screen.

``build_frame`` is pure: it turns a :class:`RenderContext` into exactly
``height`` display rows. ``render_frame`` writes those rows to the terminal.
Geometry (how many result rows and preview rows fit) is computed separately
by :func:`frame_geometry` so the loop can feed it back into picker state
before anything is drawn.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from ..ansi import SGR_RESET, clip_ansi_line, display_width, pad_ansi_line, strip_ansi, wrap_ansi_line
from ..preview.layout import Layout, choose_layout

SPINNER_FRAMES: tuple[str, ...] = ("|", "/", "-", "\\")
DIVIDER_VERTICAL = "│"
DIVIDER_HORIZONTAL = "─"
HIGHLIGHT_MARK = ">"
SELECTED_MARK = "*"


@dataclass(frozen=True)
class Rect:
    col: int
    row: int
    width: int
    height: int


@dataclass(frozen=True)
class FrameGeometry:
    list_rect: Rect
    preview_rect: Rect | None = None
    preview_side: str | None = None

    def results_height(self, chrome_rows: int) -> int:
        return max(1, self.list_rect.height - chrome_rows)


def frame_geometry(
    width: int,
    height: int,
    layouts: Sequence[Layout],
    preview_visible: bool,
) -> FrameGeometry:
    """Split the screen between the result list and the preview pane."""
    width = max(1, width)
    height = max(1, height)
    full = Rect(0, 0, width, height)
    if not preview_visible:
        return FrameGeometry(full)
    choice = choose_layout(layouts, width, height)
    if choice is None:
        return FrameGeometry(full)
    side = choice.layout.side
    # The divider takes one cell out of the list side.
    size = choice.size
    if side == "right":
        return FrameGeometry(Rect(0, 0, max(1, width - size - 1), height), Rect(width - size, 0, size, height), side)
    if side == "left":
        return FrameGeometry(Rect(size + 1, 0, max(1, width - size - 1), height), Rect(0, 0, size, height), side)
    if side == "top":
        return FrameGeometry(Rect(0, size + 1, width, max(1, height - size - 1)), Rect(0, 0, width, size), side)
    return FrameGeometry(Rect(0, 0, width, max(1, height - size - 1)), Rect(0, height - size, width, size), side)


@dataclass
class RenderContext:
    width: int
    height: int
    prompt: str
    query: str
    cursor: int
    items: Sequence[tuple[str, bool]]
    highlighted_row: int
    match_count: int
    total_count: int
    selected_count: int = 0
    running: bool = False
    spinner_frame: int = 0
    header: str = ""
    footer: str = ""
    status_message: str = ""
    results_wrap: bool = False
    layouts: Sequence[Layout] = field(default_factory=lambda: (Layout(),))
    preview_visible: bool = False
    preview_lines: Sequence[str] = ()
    preview_offset: int = 0
    preview_wrap: bool = False
    preview_title: str = ""
    preview_error: str | None = None
    preview_loading: bool = False
    overlay_text: str | None = None
    color: bool = True


def chrome_rows(header: str, footer: str) -> int:
    """Rows of the list area not used for results: prompt, info, header, footer."""
    return 2 + len(header.splitlines()) + len(footer.splitlines())


def _styled(text: str, sgr: str, color: bool) -> str:
    if not color or not text:
        return text
    return f"\033[{sgr}m{text}{SGR_RESET}"


def highlighted_with_ansi(text: str) -> str:
    """Apply highlight styling without discarding existing ANSI colors."""
    if not text:
        return text
    # Keep reverse video active even when the text contains internal resets.
    return "\033[7m" + text.replace(SGR_RESET, "\033[0;7m") + SGR_RESET


def _prompt_line(context: RenderContext, width: int) -> str:
    query = context.query
    cursor = max(0, min(context.cursor, len(query)))
    under = query[cursor] if cursor < len(query) else " "
    if context.color:
        cursor_cell = f"\033[7m{under}{SGR_RESET}"
    else:
        cursor_cell = "_" if under == " " else under
    prompt = _styled(context.prompt, "1;38;5;81", context.color)
    return clip_ansi_line(prompt + query[:cursor] + cursor_cell + query[cursor + 1 :], width)


def _info_line(context: RenderContext, width: int) -> str:
    spinner = SPINNER_FRAMES[context.spinner_frame % len(SPINNER_FRAMES)] if context.running else " "
    counts = f"{spinner} {context.match_count}/{context.total_count}"
    if context.selected_count:
        counts += f" ({context.selected_count})"
    left = _styled(counts, "38;5;244", context.color)
    if not context.status_message:
        return clip_ansi_line(left, width)
    status = _styled(context.status_message, "38;5;203", context.color)
    gap = max(1, width - display_width(counts) - display_width(context.status_message))
    return clip_ansi_line(left + " " * gap + status, width)


def _result_rows(context: RenderContext, width: int, rows: int) -> list[str]:
    out: list[str] = []
    text_width = max(1, width - 3)
    for row, (text, selected) in enumerate(context.items):
        if len(out) >= rows:
            break
        highlighted = row == context.highlighted_row
        mark = (HIGHLIGHT_MARK if highlighted else " ") + (SELECTED_MARK if selected else " ") + " "
        if context.color:
            mark = _styled(mark, "1;38;5;229", True) if (highlighted or selected) else mark
        else:
            text = strip_ansi(text)
        pieces = wrap_ansi_line(text, text_width) if context.results_wrap else [clip_ansi_line(text, text_width)]
        for idx, piece in enumerate(pieces or [""]):
            if len(out) >= rows:
                break
            prefix = mark if idx == 0 else "   "
            if highlighted and context.color:
                piece = highlighted_with_ansi(pad_ansi_line(piece, text_width))
            out.append(prefix + piece)
    return out


def _list_rows(context: RenderContext, rect: Rect) -> list[str]:
    width = rect.width
    header_lines = context.header.splitlines()
    footer_lines = context.footer.splitlines()
    result_rows = max(0, rect.height - chrome_rows(context.header, context.footer))
    rows = [_prompt_line(context, width), _info_line(context, width)]
    rows.extend(clip_ansi_line(_styled(line, "38;5;110", context.color), width) for line in header_lines)
    if context.overlay_text is not None:
        body = [clip_ansi_line(line, width) for line in context.overlay_text.splitlines()]
    else:
        body = _result_rows(context, width, result_rows)
    body = body[:result_rows]
    rows.extend(body)
    rows.extend("" for _ in range(result_rows - len(body)))
    rows.extend(clip_ansi_line(_styled(line, "38;5;110", context.color), width) for line in footer_lines)
    rows = rows[: rect.height]
    rows.extend("" for _ in range(rect.height - len(rows)))
    return [pad_ansi_line(row, width) for row in rows]


def preview_rows(context: RenderContext, rect: Rect) -> list[str]:
    """Return the preview pane rows: a title row, then scrolled content."""
    width = rect.width
    title = context.preview_title
    if context.preview_loading:
        title = f"{title} ..." if title else "..."
    rows = [_styled(clip_ansi_line(title, width), "1;38;5;244", context.color)] if rect.height > 1 else []
    body_height = rect.height - len(rows)
    lines = list(context.preview_lines)
    if context.preview_error:
        lines = [_styled(context.preview_error, "38;5;203", context.color), *lines]
    if not context.color:
        lines = [strip_ansi(line) for line in lines]
    if context.preview_wrap:
        wrapped: list[str] = []
        for line in lines:
            wrapped.extend(wrap_ansi_line(line, width) or [""])
        lines = wrapped
    visible = lines[context.preview_offset : context.preview_offset + body_height]
    rows.extend(clip_ansi_line(line, width) for line in visible)
    rows.extend("" for _ in range(rect.height - len(rows)))
    return [pad_ansi_line(row, width) for row in rows]


def build_frame(context: RenderContext) -> list[str]:
    """Compose the full screen as ``height`` rows of exactly ``width`` cells."""
    geometry = frame_geometry(context.width, context.height, context.layouts, context.preview_visible)
    list_rows = _list_rows(context, geometry.list_rect)
    if geometry.preview_rect is None:
        return list_rows
    pane = preview_rows(context, geometry.preview_rect)
    divider_v = _styled(DIVIDER_VERTICAL, "38;5;240", context.color)
    divider_h = _styled(DIVIDER_HORIZONTAL * context.width, "38;5;240", context.color)
    if geometry.preview_side == "right":
        return [f"{left}{divider_v}{right}" for left, right in zip(list_rows, pane)]
    if geometry.preview_side == "left":
        return [f"{left}{divider_v}{right}" for left, right in zip(pane, list_rows)]
    if geometry.preview_side == "top":
        return [*pane, divider_h, *list_rows]
    return [*list_rows, divider_h, *pane]


def render_frame(context: RenderContext, write: Callable[[bytes], None], full: bool = False) -> None:
    """Write one frame through ``write`` (normally ``TerminalController.write``)."""
    out: list[str] = ["\033[H"]
    if full:
        out.append("\033[2J")
    rows = build_frame(context)
    for idx, row in enumerate(rows):
        out.append(row)
        if "\033" in row:
            out.append(SGR_RESET)
        if idx < len(rows) - 1:
            out.append("\r\n")
    write("".join(out).encode("utf-8", errors="replace"))


__all__ = [
    "FrameGeometry",
    "Rect",
    "RenderContext",
    "build_frame",
    "chrome_rows",
    "frame_geometry",
    "highlighted_with_ansi",
    "preview_rows",
    "render_frame",
]
