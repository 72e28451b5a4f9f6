"""Tests for neon_threads.models."""

import pytest
from pydantic import ValidationError

from neon_threads.models import (
    Character,
    InventoryItem,
    StoryEvent,
    StoryOutcome,
    StoryResponse,
)


class TestInventoryItem:
    def test_defaults(self) -> None:
        item = InventoryItem(name="Keycard")
        assert item.quantity == 1
        assert item.category == "misc"
        assert item.description == ""

    def test_zero_quantity_rejected(self) -> None:
        with pytest.raises(ValidationError):
            InventoryItem(name="Keycard", quantity=0)

    def test_invalid_category_rejected(self) -> None:
        with pytest.raises(ValidationError):
            InventoryItem(name="Keycard", category="junk")


class TestCharacter:
    def _char(self, **kw) -> Character:
        return Character(id="c1", player_id="p1", background="b", augmentations="a",
                         appearance="x", trade="t", **kw)

    def test_starting_stats(self) -> None:
        c = self._char()
        assert c.health == 100
        assert c.max_health == 100
        assert c.money == 500
        assert c.status == "alive"
        assert c.inventory == []
        assert c.story_history == []
        assert c.story_state.current_scene == "initial"
        assert c.story_state.location == "night_city_street"

    def test_invalid_status_rejected(self) -> None:
        with pytest.raises(ValidationError):
            self._char(status="undead")

    def test_dumps_camel_case_aliases(self) -> None:
        dumped = self._char().model_dump(by_alias=True)
        assert "maxHealth" in dumped
        assert "playerId" in dumped
        assert "storyHistory" in dumped
        assert "max_health" not in dumped

    def test_accepts_camel_case_input(self) -> None:
        c = Character.model_validate({
            "id": "c1", "playerId": "p1", "background": "b", "augmentations": "a",
            "appearance": "x", "trade": "t", "maxHealth": 120,
        })
        assert c.player_id == "p1"
        assert c.max_health == 120

    def test_serialise_roundtrip(self) -> None:
        c = self._char(inventory=[InventoryItem(name="Pistol", category="weapon")])
        c.story_history.append(StoryEvent(
            id="e1", timestamp="2026-01-01T00:00:00+00:00", type="story",
            description="It rains.", outcome="ok",
        ))
        restored = Character.model_validate_json(c.model_dump_json())
        assert restored == c


class TestStoryOutcome:
    def test_all_absent(self) -> None:
        o = StoryOutcome()
        assert o.health_change is None
        assert o.money_change is None
        assert o.inventory_changes == []

    def test_numeric_string_coerced(self) -> None:
        assert StoryOutcome.model_validate({"moneyChange": " 250 "}).money_change == 250

    def test_object_delta_ignored(self) -> None:
        assert StoryOutcome.model_validate({"healthChange": {"value": 5}}).health_change is None

    def test_extra_fields_ignored(self) -> None:
        o = StoryOutcome.model_validate({"healthChange": 3, "mood": "grim"})
        assert o.health_change == 3


class TestStoryResponse:
    def test_outcome_delta_is_independent_copy(self) -> None:
        r = StoryResponse(scenario="s", inventory_changes=["+Stim"])
        delta = r.outcome_delta()
        delta.inventory_changes.append("+Pistol")
        assert r.inventory_changes == ["+Stim"]

    def test_non_dict_panels_dropped(self) -> None:
        r = StoryResponse.model_validate({"panels": ["junk", {"panelNumber": 2}]})
        assert len(r.panels) == 1
        assert r.panels[0].panel_number == 2

    @pytest.mark.parametrize("raw", [float("inf"), float("-inf"), float("nan"), "inf", "-Infinity", "1e999", "NaN"])
    def test_non_finite_delta_ignored(self, raw) -> None:
        o = StoryOutcome.model_validate({"healthChange": raw, "moneyChange": raw})
        assert o.health_change is None
        assert o.money_change is None

    def test_float_string_truncated(self) -> None:
        assert StoryOutcome.model_validate({"moneyChange": "-12.7"}).money_change == -12


class TestLenientNestedModels:
    def test_bad_panel_fields_defaulted(self) -> None:
        r = StoryResponse.model_validate({
            "healthChange": -30,
            "panels": [{"panelNumber": "one", "visualDescription": 7, "dialogue": "hi", "narration": 3}],
        })
        assert r.health_change == -30
        panel = r.panels[0]
        assert panel.panel_number == 1
        assert panel.visual_description == ""
        assert panel.dialogue == []
        assert panel.narration is None

    def test_combat_scenario_lists_coerced(self) -> None:
        r = StoryResponse.model_validate({
            "combat": {"opponent": 42, "stakes": ["x"], "playerAdvantages": "high ground",
                       "playerDisadvantages": ["outnumbered", 3]},
        })
        assert r.combat.opponent == "Unknown opponent"
        assert r.combat.stakes == ""
        assert r.combat.player_advantages == []
        assert r.combat.player_disadvantages == ["outnumbered"]

    def test_bad_scalar_fields_defaulted(self) -> None:
        r = StoryResponse.model_validate({
            "moneyChange": 40, "outcome": 5, "nextScene": ["bar"], "requiresInput": "maybe",
        })
        assert r.money_change == 40
        assert r.outcome is None
        assert r.next_scene is None
        assert r.requires_input is True
