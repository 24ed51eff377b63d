from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class BookRow:
    id: int
    title: str
    author: str


@dataclass
class UpdateStatement:
    sql: str
    params: dict[str, object] = field(default_factory=dict)
