"""Tests for run_scenario / run_action / run_combat with a stubbed narrative service."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from backend import storage
from backend.characters import new_character
from backend.pipeline import CharacterDeadError, CharacterNotFound, run_action, run_combat, run_scenario
from neon_threads.config import ProviderSettings
from neon_threads.images import ImageClient
from neon_threads.models import CombatResolution, CombatScenario, StoryResponse
from neon_threads.outcomes import fallback_panels


def _saved_character(**kw):
    c = new_character("Street kid", "Cyber-eyes", "Mohawk", "Solo")
    for k, v in kw.items():
        setattr(c, k, v)
    storage.save_character(c)
    return c


def _narrative(response=None, resolution=None):
    narrative = AsyncMock()
    narrative.opening_scenario.return_value = response
    narrative.player_action.return_value = response
    narrative.resolve_combat.return_value = resolution
    return narrative


def _story(**kw):
    fields = dict(scenario="Something happens.", panels=fallback_panels("Something happens."), next_scene="alley")
    fields.update(kw)
    return StoryResponse(**fields)


COMBAT = CombatScenario(opponent="Scav", environment="Dump", stakes="Your kidneys")


# ── run_scenario ─────────────────────────────────────────────


async def test_scenario_records_story_event_without_stat_changes():
    c = _saved_character()
    result = await run_scenario(c.id, _narrative(_story(health_change=-50, money_change=-500)))

    saved = storage.get_character(c.id)
    assert (saved.health, saved.money) == (100, 500)
    assert saved.story_state.current_scene == "alley"
    assert [e.type for e in saved.story_history] == ["story"]
    assert saved.story_history[0].outcome == "Story scenario generated"
    assert result["scenario"] == "Something happens."
    assert result["health"] == 100
    assert result["died"] is False


async def test_scenario_illustrates_first_panel():
    c = _saved_character()
    images = AsyncMock()
    images.generate.return_value = "https://cdn/panel.png"
    result = await run_scenario(c.id, _narrative(_story()), images)

    assert images.generate.await_count == 1
    assert result["panels"][0]["imageUrl"] == "https://cdn/panel.png"
    assert storage.get_character(c.id).story_history[0].image_url == "https://cdn/panel.png"


async def test_scenario_image_failure_is_not_fatal():
    c = _saved_character()
    images = AsyncMock()
    images.generate.return_value = None
    result = await run_scenario(c.id, _narrative(_story()), images)
    assert result["panels"][0]["imageUrl"] is None
    assert len(storage.get_character(c.id).story_history) == 1


async def test_missing_character():
    with pytest.raises(CharacterNotFound):
        await run_scenario("ghost", _narrative(_story()))


async def test_dead_character_is_refused():
    c = _saved_character(status="dead", health=0)
    narrative = _narrative(_story())
    with pytest.raises(CharacterDeadError):
        await run_action(c.id, "Get up", narrative)
    narrative.player_action.assert_not_awaited()
    assert storage.get_character(c.id).story_history == []


# ── run_action ───────────────────────────────────────────────


async def test_action_applies_deltas_and_saves():
    c = _saved_character()
    response = _story(
        outcome="SUCCESS",
        health_change=-20,
        money_change=150,
        inventory_changes=["+Keycard", "-Pistol"],
        consequences=["Guards alerted"],
    )
    result = await run_action(c.id, "Rob the booth", _narrative(response))

    saved = storage.get_character(c.id)
    names = [i.name for i in saved.inventory]
    assert (saved.health, saved.money) == (80, 650)
    assert "Keycard" in names
    assert "Pistol" not in names
    assert saved.story_state.current_scene == "alley"

    event = saved.story_history[-1]
    assert event.type == "decision"
    assert event.player_input == "Rob the booth"
    assert event.consequences == ["Guards alerted"]

    assert result["health"] == 80
    assert result["money"] == 650
    assert result["maxHealth"] == 100
    assert any(i["name"] == "Keycard" for i in result["inventory"])


async def test_action_with_combat_is_combat_event():
    c = _saved_character()
    await run_action(c.id, "Start a fight", _narrative(_story(combat=COMBAT)))
    assert storage.get_character(c.id).story_history[-1].type == "combat"


async def test_action_lethal_damage_kills():
    c = _saved_character()
    result = await run_action(c.id, "Jump off the tower", _narrative(_story(health_change=-150)))

    saved = storage.get_character(c.id)
    assert saved.health == 0
    assert saved.status == "dead"
    assert [e.type for e in saved.story_history] == ["decision", "death"]
    assert saved.story_history[-1].outcome == "Character died"
    assert result["died"] is True
    assert result["status"] == "dead"


async def test_action_without_deltas_keeps_stats():
    c = _saved_character()
    await run_action(c.id, "Look around", _narrative(_story()))
    saved = storage.get_character(c.id)
    assert (saved.health, saved.money, len(saved.inventory)) == (100, 500, len(c.inventory))


# ── run_combat ───────────────────────────────────────────────


@pytest.mark.parametrize(
    ("outcome", "health"),
    [("victory", 95), ("defeat", 80), ("escape", 90), ("negotiation", 100)],
)
async def test_combat_damage_by_outcome(outcome, health):
    c = _saved_character()
    resolution = CombatResolution(outcome=outcome, description="Fight.", character_status="alive")
    result = await run_combat(c.id, COMBAT, "Swing", _narrative(resolution=resolution))
    assert storage.get_character(c.id).health == health
    assert result["health"] == health


async def test_combat_injuries_damage():
    c = _saved_character()
    resolution = CombatResolution(
        outcome="victory", description="Ouch.", character_status="injured",
        character_injuries=["broken arm", "cut"],
    )
    await run_combat(c.id, COMBAT, "Swing", _narrative(resolution=resolution))
    assert storage.get_character(c.id).health == 80


async def test_combat_death():
    c = _saved_character()
    resolution = CombatResolution(outcome="defeat", description="Flatlined.", character_status="dead")
    result = await run_combat(c.id, COMBAT, "Charge", _narrative(resolution=resolution))

    saved = storage.get_character(c.id)
    assert saved.status == "dead"
    assert saved.health == 0
    assert [e.type for e in saved.story_history] == ["combat", "death"]
    assert saved.story_history[0].player_input == "Charge"
    assert result["died"] is True
    assert result["outcome"] == "defeat"


async def test_combat_image_attached():
    c = _saved_character()
    images = AsyncMock()
    images.generate.return_value = "https://cdn/fight.png"
    resolution = CombatResolution(outcome="escape", description="Run!", character_status="alive")
    result = await run_combat(c.id, COMBAT, "Run", _narrative(resolution=resolution), images)
    assert result["imageUrl"] == "https://cdn/fight.png"
    assert storage.get_character(c.id).story_history[0].image_url == "https://cdn/fight.png"


async def test_image_provider_html_page_does_not_fail_turn():
    c = _saved_character()
    resp = MagicMock()
    resp.raise_for_status = MagicMock()
    resp.json.side_effect = json.JSONDecodeError("Expecting value", "<html>oops</html>", 0)
    images = ImageClient(ProviderSettings(url="https://images.example/api/v1"))
    resolution = CombatResolution(outcome="victory", description="Done.", character_status="alive")
    with patch("httpx.AsyncClient.post", AsyncMock(return_value=resp)):
        await run_scenario(c.id, _narrative(_story()), images)
        result = await run_combat(c.id, COMBAT, "Swing", _narrative(resolution=resolution), images)
    assert result["imageUrl"] is None
    assert [e.type for e in storage.get_character(c.id).story_history] == ["story", "combat"]
