"""Shared test fixtures."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import pytest

from svgcraft.knowledge.cache import TTLCache
from svgcraft.knowledge.preferences import PreferenceStore
from svgcraft.knowledge.retrieval import RetrievalEngine
from svgcraft.knowledge.store import KnowledgeStore
from svgcraft.knowledge.tokens import TokenBudget
from svgcraft.models.document import AISVGDocument, Bounds, ComponentMetadata, DocumentMetadata, SVGComponent
from svgcraft.models.intent import Constraints, DesignIntent, LayoutIntent, StyleIntent
from svgcraft.models.knowledge import (
    FewshotBody,
    GlossaryBody,
    KnowledgeDraft,
    MotifBody,
    StylePackBody,
    StylePalette,
)


NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)
PALETTE = ("#2563eb", "#16a34a", "#eab308")


def run(coro):
    """Drive a coroutine to completion from a sync test."""
    return asyncio.run(coro)


def make_intent(
    palette: tuple[str, ...] = PALETTE,
    motifs: tuple[str, ...] = (),
    layout: LayoutIntent | None = None,
    constraints: Constraints | None = None,
    **style,
) -> DesignIntent:
    return DesignIntent(
        style=StyleIntent(palette=palette, **style),
        motifs=motifs,
        layout=layout or LayoutIntent(),
        constraints=constraints or Constraints(),
    )


def make_component(
    component_id: str,
    element: str = "circle",
    motif: str | None = None,
    **attributes,
) -> SVGComponent:
    if not attributes and element == "circle":
        attributes = {"cx": 200.0, "cy": 200.0, "r": 20.0, "fill": "#2563eb"}
    return SVGComponent(
        id=component_id,
        type=motif or element,
        element=element,
        attributes=attributes,
        metadata=ComponentMetadata(motif=motif),
    )


def make_document(
    components: list[SVGComponent] | None = None,
    width: float = 400.0,
    height: float = 400.0,
    palette: list[str] | None = None,
) -> AISVGDocument:
    return AISVGDocument(
        components=components or [],
        metadata=DocumentMetadata(prompt="test"),
        bounds=Bounds(width=width, height=height),
        palette=palette if palette is not None else ["#2563eb"],
    )


def motif_draft(
    name: str,
    tags: list[str],
    quality: float = 0.8,
    status: str = "active",
    description: str = "A reusable design shape",
) -> KnowledgeDraft:
    return KnowledgeDraft(
        title=f"{name.title()} motif",
        body=MotifBody(name=name, description=description, elements=["path"]),
        tags=tags,
        status=status,
        quality_score=quality,
    )


def glossary_draft(term: str, tags: list[str], quality: float = 0.8) -> KnowledgeDraft:
    return KnowledgeDraft(
        title=f"Glossary: {term}",
        body=GlossaryBody(term=term, definition=f"Design term {term}"),
        tags=tags,
        status="active",
        quality_score=quality,
    )


def fewshot_draft(prompt: str, tags: list[str], quality: float = 0.8) -> KnowledgeDraft:
    return KnowledgeDraft(
        title=f"Example: {prompt}",
        body=FewshotBody(prompt=prompt, response="<svg/>"),
        tags=tags,
        status="active",
        quality_score=quality,
    )


def style_pack_draft(tags: list[str], quality: float = 0.9) -> KnowledgeDraft:
    return KnowledgeDraft(
        title="Coastal style pack",
        body=StylePackBody(
            name="coastal",
            palette=StylePalette(primary=["#0ea5e9", "#f8fafc"]),
            constraints={"stroke_width": 2},
        ),
        tags=tags,
        status="active",
        quality_score=quality,
    )


@pytest.fixture
def store() -> KnowledgeStore:
    return KnowledgeStore(budget=TokenBudget(), cache=TTLCache())


@pytest.fixture
def retrieval(store: KnowledgeStore) -> RetrievalEngine:
    return RetrievalEngine(store, PreferenceStore(), store.cache, store.budget, clock=lambda: NOW)
