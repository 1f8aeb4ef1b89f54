# tests/services/test_persistence.py
"""
Testes dos registros persistidos e do `InMemoryWordStore`.

Os testes asseguram que:
- registros inválidos são rejeitados na construção
- upserts usam a chave natural (idempotentes)
- legendas de um episódio são encontradas pelo prefixo do id e
  ordenadas pelo início
- sentidos gravados passam pelo schema de Sense
"""

import asyncio

import pytest

from thai_lexflow.core.contract.errors import ContractViolation
from thai_lexflow.services.persistence import InMemoryWordStore, SubtitleRecord, WordRecord

from tests._helpers import make_sense


# =====================================================
# SubtitleRecord
# =====================================================

def test_subtitle_record_valid():
    sub = SubtitleRecord("ep1_0", "กินข้าว", 1.5, 3.0)
    assert not sub.has_tokens
    assert sub.to_dict() == {"id": "ep1_0", "thai": "กินข้าว", "start_sec_th": 1.5, "end_sec_th": 3.0}


@pytest.mark.parametrize(
    "args",
    [
        ("", "กิน", 0, 1),
        ("ep1_0", " ", 0, 1),
        ("ep1_0", "กิน", -1, 1),
        ("ep1_0", "กิน", 0, 86400),
        ("ep1_0", "กิน", 2, 2),
        ("ep1_0", "กิน", "0", 1),
        ("ep1_0", "กิน", True, 2),
    ],
)
def test_subtitle_record_invalid(args):
    with pytest.raises(ValueError):
        SubtitleRecord(*args)


def test_subtitle_with_tokens_is_new_record():
    sub = SubtitleRecord("ep1_0", "กินข้าว", 0, 1)
    tokenized = sub.with_tokens(["กิน", "ข้าว"])
    assert tokenized.tokens_th == ("กิน", "ข้าว")
    assert tokenized.has_tokens
    assert sub.tokens_th is None
    assert tokenized.to_dict()["tokens_th"] == {"tokens": ["กิน", "ข้าว"]}


@pytest.mark.parametrize(
    "sub_id, expected",
    [("ep1", True), ("ep1_3", True), ("ep10_3", False), ("xep1_3", False)],
)
def test_subtitle_belongs_to(sub_id, expected):
    assert SubtitleRecord(sub_id, "กิน", 0, 1).belongs_to("ep1") is expected


# =====================================================
# WordRecord
# =====================================================

def test_word_record_completeness():
    assert not WordRecord("กิน").is_complete
    assert not WordRecord("กิน", g2p=" ").is_complete
    assert WordRecord("กิน", g2p="kin1").is_complete
    assert WordRecord("กิน", phonetic_en="gin").is_complete


def test_word_record_requires_word():
    with pytest.raises(ValueError):
        WordRecord("")


# =====================================================
# InMemoryWordStore
# =====================================================

def test_word_upsert_is_idempotent():
    store = InMemoryWordStore()

    async def scenario():
        await store.upsert_word(WordRecord("กิน", g2p="kin1"))
        await store.upsert_word(WordRecord("กิน", g2p="kin1", phonetic_en="gin"))
        return await store.get_word("กิน"), await store.get_word("ข้าว")

    word, missing = asyncio.run(scenario())
    assert word == WordRecord("กิน", g2p="kin1", phonetic_en="gin")
    assert missing is None
    assert len(store.words) == 1


def test_senses_validated_and_copied():
    store = InMemoryWordStore()

    async def scenario():
        await store.upsert_senses("กิน", [make_sense(1)])
        got = await store.get_senses("กิน")
        got[0]["id"] = 99
        return await store.get_senses("กิน"), await store.get_senses("ข้าว")

    senses, none = asyncio.run(scenario())
    assert senses == [make_sense(1)]
    assert none == []


def test_invalid_sense_rejected():
    store = InMemoryWordStore()
    with pytest.raises(ContractViolation):
        asyncio.run(store.upsert_senses("กิน", [make_sense(1), {"id": 2, "score": 1}]))
    assert store.senses == {}


def test_subtitles_by_media_sorted_by_start():
    store = InMemoryWordStore()
    subs = [
        SubtitleRecord("ep1_1", "ข้าว", 5, 6),
        SubtitleRecord("ep1_0", "กิน", 1, 2),
        SubtitleRecord("ep2_0", "ไป", 0, 1),
    ]

    async def scenario():
        await store.upsert_subtitles(subs)
        return await store.get_subtitles("ep1")

    found = asyncio.run(scenario())
    assert [s.id for s in found] == ["ep1_0", "ep1_1"]
