"""Resolved, immutable picker configuration.

``build_config`` merges defaults, the JSON config file, and CLI overrides
into a :class:`PickerConfig`, validating every binding, template, layout,
and split rule up front. Any problem raises :class:`ConfigError` before the
terminal is touched.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from .columns import ColumnSplitter, SplitRule, build_splitter, validate_template
from .dispatch.actions import ActionKind
from .dispatch.bindings import BindingTable, default_bindings
from .errors import ConfigError
from .preview.layout import Layout, parse_layout
from .preview.pipeline import PreviewSource


@dataclass(frozen=True)
class PickerConfig:
    bindings: BindingTable = field(default_factory=default_bindings)
    split: SplitRule = SplitRule()
    layouts: tuple[Layout, ...] = (Layout(),)
    previews: tuple[PreviewSource, ...] = ()
    source_command: str | None = None
    output_template: str = "{}"
    output_separator: str = "\n"
    input_separator: str = "\n"
    prompt: str = "> "
    header: str = ""
    footer: str = ""
    query: str = ""
    multi: bool = True
    allow_empty: bool = False
    active_column: int = 0
    results_wrap: bool = False
    preview_wrap: bool = False
    preview_reset_on_change: bool = True
    preview_scroll_wrap: bool = False
    preview_debounce_ms: int = 0
    preview_max_lines: int = 2000
    overlays: tuple[str, ...] = ()
    history: tuple[str, ...] = ()
    status_seconds: float = 3.0
    foreground_queue_limit: int = 8
    no_color: bool = False
    mouse: bool = True

    def splitter(self) -> ColumnSplitter:
        return build_splitter(self.split)


def _as_split_rule(value: object, names: object, max_columns: object) -> SplitRule:
    name_tuple = tuple(str(name) for name in names) if isinstance(names, (list, tuple)) else ()
    limit = max_columns if isinstance(max_columns, int) else SplitRule().max_columns
    if value is None:
        return SplitRule(names=name_tuple[:1])
    if isinstance(value, SplitRule):
        return value
    if isinstance(value, str):
        return SplitRule.delimiter(value, name_tuple, limit)
    if isinstance(value, (list, tuple)):
        return SplitRule.regexes([str(item) for item in value], name_tuple)
    raise ConfigError("'split' must be a delimiter string or a list of regexes")


def _as_layouts(value: object) -> tuple[Layout, ...]:
    if value is None:
        return (Layout(),)
    items = value if isinstance(value, (list, tuple)) else [value]
    layouts: list[Layout] = []
    for item in items:
        if isinstance(item, Layout):
            layouts.append(item.validate())
        elif isinstance(item, str):
            layouts.append(parse_layout(item))
        elif isinstance(item, Mapping):
            try:
                layouts.append(Layout(**item).validate())
            except TypeError as exc:
                raise ConfigError(f"invalid layout {dict(item)!r}: {exc}") from exc
        else:
            raise ConfigError(f"invalid layout entry: {item!r}")
    if not layouts:
        raise ConfigError("at least one layout is required")
    return tuple(layouts)


def _as_previews(value: object) -> tuple[PreviewSource, ...]:
    if value is None:
        return ()
    items = value if isinstance(value, (list, tuple)) else [value]
    sources: list[PreviewSource] = []
    for idx, item in enumerate(items):
        if isinstance(item, PreviewSource):
            sources.append(item)
        elif isinstance(item, str):
            sources.append(PreviewSource(name=str(idx), command=item))
        elif isinstance(item, Mapping) and isinstance(item.get("command"), str):
            sources.append(PreviewSource(name=str(item.get("name", idx)), command=item["command"]))
        else:
            raise ConfigError(f"invalid preview entry: {item!r}")
    return tuple(sources)


def _as_bindings(value: object) -> BindingTable:
    if not isinstance(value, Mapping):
        raise ConfigError("'bindings' must be an object mapping triggers to actions")
    return BindingTable.from_mapping(value)


_SIMPLE_FIELDS: dict[str, type | tuple[type, ...]] = {
    "source_command": str,
    "output_template": str,
    "output_separator": str,
    "input_separator": str,
    "prompt": str,
    "header": str,
    "footer": str,
    "query": str,
    "multi": bool,
    "allow_empty": bool,
    "active_column": int,
    "results_wrap": bool,
    "preview_wrap": bool,
    "preview_reset_on_change": bool,
    "preview_scroll_wrap": bool,
    "preview_debounce_ms": int,
    "preview_max_lines": int,
    "status_seconds": (int, float),
    "foreground_queue_limit": int,
    "no_color": bool,
    "mouse": bool,
}


def build_config(*layers: Mapping[str, object]) -> PickerConfig:
    """Merge option layers (later wins) into a validated :class:`PickerConfig`."""
    merged: dict[str, object] = {}
    bindings_layers: list[object] = []
    for layer in layers:
        for key, value in layer.items():
            if value is None:
                continue
            if key == "bindings":
                bindings_layers.append(value)
            else:
                merged[key] = value

    kwargs: dict[str, object] = {}
    for key, expected in _SIMPLE_FIELDS.items():
        if key not in merged:
            continue
        value = merged[key]
        if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
            raise ConfigError(f"option {key!r} has invalid value {value!r}")
        kwargs[key] = value

    use_defaults = bool(merged.get("default_bindings", True))
    bindings = default_bindings() if use_defaults else BindingTable()
    for layer_bindings in bindings_layers:
        bindings.update(_as_bindings(layer_bindings))

    split = _as_split_rule(merged.get("split"), merged.get("column_names"), merged.get("max_columns"))
    config = PickerConfig(
        bindings=bindings,
        split=split,
        layouts=_as_layouts(merged.get("layouts")),
        previews=_as_previews(merged.get("previews")),
        overlays=tuple(str(item) for item in merged.get("overlays", ()) or ()),
        history=tuple(str(item) for item in merged.get("history", ()) or ()),
        **kwargs,
    )
    validate_config(config)
    return config


_TEMPLATE_ACTIONS = {ActionKind.EXECUTE, ActionKind.BECOME, ActionKind.RELOAD, ActionKind.PREVIEW, ActionKind.PRINT}


def validate_config(config: PickerConfig) -> None:
    splitter = config.splitter()
    if not 0 <= config.active_column < splitter.count:
        raise ConfigError(f"active column {config.active_column} is out of range for {splitter.count} columns")
    if len(config.input_separator) != 1:
        raise ConfigError("input separator must be a single character")
    if config.preview_max_lines <= 0:
        raise ConfigError("preview_max_lines must be >= 1")
    if config.preview_debounce_ms < 0:
        raise ConfigError("preview_debounce_ms must be >= 0")
    if config.foreground_queue_limit < 0:
        raise ConfigError("foreground_queue_limit must be >= 0")
    validate_template(config.output_template, splitter)
    for source in config.previews:
        validate_template(source.command, splitter)
    for trigger, actions in config.bindings.items():
        for action in actions:
            if action.kind in _TEMPLATE_ACTIONS and isinstance(action.payload, str):
                try:
                    validate_template(action.payload, splitter)
                except ConfigError as exc:
                    raise ConfigError(f"{trigger}: {exc}") from exc
            if action.kind is ActionKind.COLUMN and not 0 <= int(action.payload) < splitter.count:
                raise ConfigError(f"{trigger}: column {action.payload} is out of range")


__all__ = ["PickerConfig", "build_config", "validate_config"]
