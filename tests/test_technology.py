import pytest

from hex_empires.core.enums import Era, TechCategory
from hex_empires.core.exceptions import TechnologyError
from hex_empires.data import TechnologyData, DEFAULT_RULES
from hex_empires.game.technology_manager import TechnologyManager


def small_tree():
    techs = {
        "a": TechnologyData("a", "A", 10, TechCategory.SCIENCE),
        "b": TechnologyData("b", "B", 20, TechCategory.SCIENCE, ("a",)),
        "c": TechnologyData("c", "C", 30, TechCategory.MILITARY, ("a", "b")),
    }
    return TechnologyManager(techs, starting_technologies=())


def test_prerequisite_unlocks_dependent():
    manager = small_tree()
    assert not manager.can_research_technology("b")
    assert manager.research_technology("a")
    assert manager.can_research_technology("b")


def test_research_fails_without_prerequisites():
    manager = small_tree()
    assert not manager.research_technology("c")
    assert "c" not in manager.researched


def test_available_after_each_step():
    manager = small_tree()
    assert [t.tech_id for t in manager.get_available()] == ["a"]
    manager.research_technology("a")
    assert [t.tech_id for t in manager.get_available()] == ["b"]
    manager.research_technology("b")
    assert [t.tech_id for t in manager.get_available()] == ["c"]
    assert manager.get_future() == []


def test_cannot_research_twice():
    manager = small_tree()
    manager.research_technology("a")
    assert not manager.research_technology("a")


def test_researching_cleared_on_completion():
    manager = small_tree()
    assert manager.set_researching("a")
    assert not manager.set_researching("c")
    manager.research_technology("a")
    assert manager.researching is None


def test_era_from_prerequisite_depth():
    manager = small_tree()
    assert manager.get_era("a") == Era.ANCIENT
    assert manager.get_era("b") == Era.CLASSICAL
    assert manager.get_era("c") == Era.MEDIEVAL
    assert manager.get_technologies_by_era()[Era.ANCIENT] == ["a"]


def test_cycle_detected():
    techs = {
        "x": TechnologyData("x", "X", 10, TechCategory.SCIENCE, ("y",)),
        "y": TechnologyData("y", "Y", 10, TechCategory.SCIENCE, ("x",)),
    }
    with pytest.raises(TechnologyError):
        TechnologyManager(techs, ()).get_prerequisite_depth("x")


def test_default_table_starts_with_starting_technologies():
    manager = TechnologyManager()
    assert manager.is_researched("pottery")
    assert manager.is_researched("ceremonial_burial")
    assert manager.can_research_technology("alphabet")
    assert not manager.can_research_technology("iron_working")
    assert set(manager.get_children("bronze_working")) == {"iron_working", "currency"}


def test_state_round_trip():
    manager = TechnologyManager(DEFAULT_RULES.technologies)
    manager.research_technology("alphabet")
    manager.set_researching("mathematics")
    other = TechnologyManager(DEFAULT_RULES.technologies)
    other.load_dict(manager.to_dict())
    assert other.researched == manager.researched
    assert other.researching == "mathematics"


def test_load_rejects_unknown_technology():
    with pytest.raises(TechnologyError):
        TechnologyManager().load_dict({"researched": ["warp_drive"]})


def test_progress_summaries_and_reset():
    manager = small_tree()
    manager.research_technology("a")
    manager.research_technology("b")
    assert manager.completion_percentage() == pytest.approx(200 / 3)
    assert manager.total_science_invested() == 30
    manager.reset()
    assert manager.researched == set()
    assert manager.completion_percentage() == 0
