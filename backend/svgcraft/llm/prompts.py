"""Prompt templates per LLM task."""

from __future__ import annotations

_NORMALIZE_TEMPLATE = """You convert free-text design prompts into a structured design intent for a vector graphics generator.

Respond with ONLY a JSON object, no prose, matching this shape:
{{
  "style": {{
    "palette": ["#RRGGBB", ...],            // 1-10 hex colors
    "stroke_rules": {{
      "stroke_only": false,
      "min_stroke_width": 1,                // 0.1-10
      "max_stroke_width": 2,                // 0.1-20
      "allow_fill": true
    }},
    "density": "sparse" | "medium" | "dense",
    "symmetry": "none" | "horizontal" | "vertical" | "radial"
  }},
  "motifs": ["..."],                        // at most 20 short nouns
  "layout": {{
    "sizes": [{{"type": "default", "min_size": 50, "max_size": 150}}],
    "counts": [{{"type": "element", "min": 3, "max": 7, "preferred": 5}}],
    "arrangement": "grid" | "centered" | "scattered" | "organic"
  }},
  "constraints": {{
    "stroke_only": false,
    "max_elements": 25,                     // 1-100
    "required_motifs": ["..."]              // at most 10, subset of motifs
  }}
}}

Rules:
- Prefer these palette colors when the prompt does not name any: {default_palette}.
- "outline", "line art" or "wireframe" means stroke_only true and allow_fill false.
- Keep motifs concrete (circle, leaf, star, wave, arch...).
"""

_TEMPLATES = {
    "normalize": _NORMALIZE_TEMPLATE,
}


def get_prompt_template(task: str) -> str:
    return _TEMPLATES.get(task, _NORMALIZE_TEMPLATE)


def get_all_templates() -> dict[str, str]:
    return dict(_TEMPLATES)
