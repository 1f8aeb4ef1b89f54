# tests/core/pipeline/test_context_merge.py
"""Testes das operações funcionais sobre o contexto (recorte e merge)."""

from thai_lexflow.core.pipeline.context import context_slice, merge_context


def test_slice_copies_only_present_fields():
    ctx = {"word_th": "กิน", "orstSenses": [{"id": 1, "definition_th": "x"}]}
    part = context_slice(ctx, ["word_th", "orstSenses", "g2p"])
    assert part == ctx
    part["orstSenses"][0]["id"] = 99
    assert ctx["orstSenses"][0]["id"] == 1


def test_merge_returns_new_dict():
    ctx = {"word_th": "กิน"}
    merged = merge_context(ctx, {"g2p": "kin1"})
    assert merged == {"word_th": "กิน", "g2p": "kin1"}
    assert ctx == {"word_th": "กิน"}


def test_merge_overrides_existing_field():
    ctx = {"word_th": "กิน", "g2p": "old"}
    assert merge_context(ctx, {"g2p": "kin1"})["g2p"] == "kin1"


def test_merge_does_not_share_nested_values():
    updates = {"allTokens": ["กิน"]}
    merged = merge_context({}, updates)
    updates["allTokens"].append("ข้าว")
    assert merged["allTokens"] == ["กิน"]
