"""Preview request/result values exchanged with the background runner."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class PreviewRequest:
    """One preview command for ``target`` stamped with its source's generation."""

    source: int
    generation: int
    target: int
    command: str
    env: dict[str, str] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class PreviewResult:
    request: PreviewRequest
    lines: tuple[str, ...] = ()
    error: str | None = None
    exit_code: int | None = None

    @property
    def source(self) -> int:
        return self.request.source

    @property
    def generation(self) -> int:
        return self.request.generation

    @property
    def target(self) -> int:
        return self.request.target


__all__ = ["PreviewRequest", "PreviewResult"]
