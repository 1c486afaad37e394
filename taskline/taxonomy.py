"""Fixed priority and category enumerations with their display tables."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Priority(str, Enum):
    P1 = "p1"
    P2 = "p2"
    P3 = "p3"
    P4 = "p4"
    NONE = "none"

    @property
    def label(self) -> str:
        return PRIORITY_INFO[self].label

    @property
    def color(self) -> str:
        return PRIORITY_INFO[self].color


class Category(str, Enum):
    CHAT = "chat"
    READING = "reading"
    CODING = "coding"
    WRITING = "writing"
    THINKING = "thinking"
    RESEARCH = "research"
    CHORE = "chore"
    NONE = "none"

    @property
    def label(self) -> str:
        return CATEGORY_INFO[self].label

    @property
    def glyph(self) -> str:
        return CATEGORY_INFO[self].glyph


@dataclass(frozen=True)
class PriorityInfo:
    label: str
    color: str


@dataclass(frozen=True)
class CategoryInfo:
    glyph: str
    label: str


PRIORITY_INFO: dict[Priority, PriorityInfo] = {
    Priority.P1: PriorityInfo("Urgent & Important", "red"),
    Priority.P2: PriorityInfo("Urgent & Not Important", "orange"),
    Priority.P3: PriorityInfo("Not Urgent & Important", "yellow"),
    Priority.P4: PriorityInfo("Not Urgent & Not Important", "green"),
    Priority.NONE: PriorityInfo("No Priority", "blue"),
}

# Declared order is the scan order used when decoding category glyphs.
CATEGORY_INFO: dict[Category, CategoryInfo] = {
    Category.CHAT: CategoryInfo("💬", "Talk to someone"),
    Category.READING: CategoryInfo("📚", "Reading"),
    Category.CODING: CategoryInfo("💾", "Coding"),
    Category.WRITING: CategoryInfo("✏️", "Writing"),
    Category.THINKING: CategoryInfo("💡", "Thinking"),
    Category.RESEARCH: CategoryInfo("🔭", "Research"),
    Category.CHORE: CategoryInfo("👔", "Chore"),
    Category.NONE: CategoryInfo("❌", "No Category"),
}


def parse_priority(value: str | None) -> Priority:
    """Map a priority code such as ``p2`` or ``P2`` to the enum."""
    if value is None:
        return Priority.NONE
    normalized = value.strip().lower()
    if not normalized:
        return Priority.NONE
    return Priority(normalized)


def parse_category(value: str | None) -> Category:
    """Map a category name, or its glyph, to the enum."""
    if value is None:
        return Category.NONE
    normalized = value.strip()
    if not normalized:
        return Category.NONE
    for category, info in CATEGORY_INFO.items():
        if normalized.rstrip("\ufe0f") == info.glyph.rstrip("\ufe0f"):
            return category
    return Category(normalized.lower())
