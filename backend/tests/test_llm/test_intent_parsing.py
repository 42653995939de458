"""Tests for LLM output parsing and model routing (no network calls)."""

from __future__ import annotations

import json

import pytest

from svgcraft.config import settings
from svgcraft.errors import NormalizationError
from svgcraft.llm.client import get_completion
from svgcraft.llm.intent_normalizer import LLMNormalizer, parse_intent
from svgcraft.llm.model_router import get_model_for_task
from svgcraft.llm.prompts import get_all_templates, get_prompt_template
from tests.conftest import run

INTENT = {
    "style": {"palette": ["#2563eb"], "density": "sparse", "symmetry": "radial"},
    "motifs": ["sun"],
    "layout": {"arrangement": "centered"},
    "constraints": {"max_elements": 8, "required_motifs": ["sun"]},
}


def test_parse_plain_json():
    intent = parse_intent(json.dumps(INTENT))
    assert intent.style.symmetry == "radial"
    assert intent.constraints.required_motifs == ("sun",)


def test_parse_fenced_json():
    text = "Here you go:\n```json\n" + json.dumps(INTENT) + "\n```\nEnjoy."
    assert parse_intent(text).motifs == ("sun",)


def test_parse_json_embedded_in_prose():
    assert parse_intent("Sure! " + json.dumps(INTENT) + " Done.").style.density == "sparse"


def test_parse_rejects_non_json():
    with pytest.raises(NormalizationError, match="not JSON"):
        parse_intent("I cannot help with that")


def test_parse_rejects_invalid_intent():
    bad = dict(INTENT, style={"palette": ["blue"]})
    with pytest.raises(NormalizationError, match="failed validation"):
        parse_intent(json.dumps(bad))


def test_unconfigured_llm(monkeypatch):
    monkeypatch.setattr(settings, "anthropic_api_key", "")
    assert not LLMNormalizer().available
    with pytest.raises(NormalizationError):
        run(get_completion("system", "user"))


def test_model_routing(monkeypatch):
    monkeypatch.setattr(settings, "model_cheap", "cheap-model")
    monkeypatch.setattr(settings, "model_mid", "mid-model")
    assert get_model_for_task("normalize") == "cheap-model"
    assert get_model_for_task("generate") == "mid-model"
    assert get_model_for_task("unknown") == "cheap-model"
    assert get_model_for_task("normalize", "override") == "override"


def test_normalize_template_formats():
    system = get_prompt_template("normalize").format(default_palette="#111111")
    assert "#111111" in system
    assert '"palette"' in system
    assert set(get_all_templates()) == {"normalize"}
