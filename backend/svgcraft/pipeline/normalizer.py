"""Rule-based intent normalizer — keyword tables, defined for every input."""

from __future__ import annotations

import re
from dataclasses import dataclass

from svgcraft.models.intent import (
    ComponentCount,
    ComponentSize,
    Constraints,
    DesignIntent,
    LayoutIntent,
    StrokeRules,
    StyleIntent,
)

DEFAULT_PALETTE = ("#2563eb", "#16a34a", "#eab308")
MONOCHROME_PALETTE = ("#000000", "#ffffff")
MAX_PALETTE = 6

COLOR_WORDS = {
    "blue": "#2563eb",
    "red": "#dc2626",
    "green": "#16a34a",
    "yellow": "#eab308",
    "purple": "#9333ea",
    "orange": "#ea580c",
    "pink": "#ec4899",
    "black": "#000000",
    "white": "#ffffff",
    "gray": "#6b7280",
}

MOTIF_KEYWORDS = {
    "geometric": ["circle", "square", "triangle", "polygon", "diamond", "hexagon"],
    "nature": ["leaf", "tree", "flower", "branch", "organic", "natural"],
    "abstract": ["wave", "spiral", "curve", "flow", "gradient", "pattern"],
    "architectural": ["building", "structure", "column", "arch", "geometric"],
    "decorative": ["ornament", "border", "frame", "flourish", "embellishment"],
}

# First match wins
ARRANGEMENT_KEYWORDS = [
    ("centered", "centered"),
    ("grid", "grid"),
    ("scattered", "scattered"),
    ("organic", "organic"),
    ("random", "scattered"),
    ("structured", "grid"),
    ("flowing", "organic"),
]

STROKE_ONLY_KEYWORDS = ("outline", "stroke", "line art", "wireframe")
SPARSE_KEYWORDS = ("simple", "minimal", "clean")
DENSE_KEYWORDS = ("detailed", "complex", "intricate")
STOP_WORDS = {"with", "and", "the", "for", "that", "this"}

MAX_MOTIFS = 10
MAX_FREE_WORD_MOTIFS = 5
MAX_REQUIRED_MOTIFS = 3


@dataclass
class NormalizationContext:
    default_palette: list[str] | None = None
    temperature: float = 0.2


class RuleBasedNormalizer:
    """Deterministic prompt → DesignIntent mapping."""

    def normalize(self, prompt: str, context: NormalizationContext | None = None) -> DesignIntent:
        text = prompt.lower().strip()
        context = context or NormalizationContext()

        motifs = self._motifs(text)
        density = self._density(text)
        stroke_only = any(k in text for k in STROKE_ONLY_KEYWORDS)

        return DesignIntent(
            style=StyleIntent(
                palette=self._palette(text, context.default_palette),
                stroke_rules=self._stroke_rules(text, stroke_only),
                density=density,
                symmetry=self._symmetry(text),
            ),
            motifs=tuple(motifs),
            layout=LayoutIntent(
                sizes=self._sizes(text),
                counts=self._counts(text, density),
                arrangement=self._arrangement(text),
            ),
            constraints=Constraints(
                stroke_only=stroke_only,
                max_elements=10 if "simple" in text else 50 if "complex" in text else 25,
                required_motifs=tuple(motifs[:MAX_REQUIRED_MOTIFS]),
            ),
        )

    @staticmethod
    def _palette(text: str, default_palette: list[str] | None) -> tuple[str, ...]:
        if "monochrome" in text or "black and white" in text:
            return MONOCHROME_PALETTE
        colors = [hex_ for word, hex_ in COLOR_WORDS.items() if word in text]
        if not colors:
            return tuple(default_palette) if default_palette else DEFAULT_PALETTE
        return tuple(colors[:MAX_PALETTE])

    @staticmethod
    def _stroke_rules(text: str, stroke_only: bool) -> StrokeRules:
        if "thick" in text:
            max_width = 4.0
        elif "thin" in text:
            max_width = 1.0
        else:
            max_width = 2.0
        return StrokeRules(
            stroke_only=stroke_only,
            min_stroke_width=1.0 if stroke_only else 0.5,
            max_stroke_width=max_width,
            allow_fill=not stroke_only,
        )

    @staticmethod
    def _density(text: str) -> str:
        if any(k in text for k in SPARSE_KEYWORDS):
            return "sparse"
        if any(k in text for k in DENSE_KEYWORDS):
            return "dense"
        return "medium"

    @staticmethod
    def _symmetry(text: str) -> str:
        if "radial" in text or "circular" in text:
            return "radial"
        if "horizontal" in text or "mirror" in text:
            return "horizontal"
        if "vertical" in text:
            return "vertical"
        if "symmetric" in text or "symmetry" in text:
            return "horizontal"
        return "none"

    @staticmethod
    def _motifs(text: str) -> list[str]:
        found: list[str] = []
        for keywords in MOTIF_KEYWORDS.values():
            found.extend(k for k in keywords if k in text)

        words = [w for w in re.findall(r"[a-z]+", text) if len(w) > 3 and w not in STOP_WORDS]
        found.extend(words[:MAX_FREE_WORD_MOTIFS])

        return list(dict.fromkeys(found))[:MAX_MOTIFS]

    @staticmethod
    def _arrangement(text: str) -> str:
        for keyword, arrangement in ARRANGEMENT_KEYWORDS:
            if keyword in text:
                return arrangement
        return "centered"

    @staticmethod
    def _sizes(text: str) -> tuple[ComponentSize, ...]:
        sizes = []
        if "icon" in text or "small" in text:
            sizes.append(ComponentSize(type="icon", min_size=16, max_size=64))
        if "large" in text or "big" in text:
            sizes.append(ComponentSize(type="main", min_size=100, max_size=300))
        if not sizes:
            sizes.append(ComponentSize(type="default", min_size=50, max_size=150))
        return tuple(sizes)

    @staticmethod
    def _counts(text: str, density: str) -> tuple[ComponentCount, ...]:
        match = re.search(r"\d+", text)
        if match:
            n = int(match.group(0))
            return (ComponentCount(type="element", min=max(1, n - 2), max=n + 2, preferred=n),)
        base = {"sparse": 3, "dense": 8}.get(density, 5)
        return (ComponentCount(type="element", min=base - 2, max=base + 3, preferred=base),)
