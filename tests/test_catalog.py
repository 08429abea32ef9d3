import pytest

from drillforge.core.errors import ConfigurationError
from drillforge.data.catalog import (
    area_types,
    curriculum_of,
    exercise_type_catalog,
    level_definition,
    levels_for_age_group,
    ordered_levels,
)
from drillforge.schemas.exercise import Curriculum, ExerciseType


def test_level_orders_per_curriculum():
    assert ordered_levels("soroban") == ("A1", "A2", "A3", "B1", "B2", "B3", "C1", "C2", "C3", "D1", "D2", "D3")
    assert ordered_levels(Curriculum.VEDIC) == ("V1", "V2", "V3", "V4", "V5")
    assert ordered_levels("logic") == ("L1", "L2", "L3", "L4", "L5", "L6")
    assert ordered_levels("iq_games") == ("IQ1", "IQ2", "IQ3", "IQ4", "IQ5", "IQ6")


def test_soroban_a1_allows_only_basic_operations():
    a1 = level_definition("soroban", "A1")
    assert a1.digits == 1
    assert a1.operations == ("addition", "subtraction")
    assert set(a1.exercise_types) == {ExerciseType.SIMPLE_ADDITION, ExerciseType.SIMPLE_SUBTRACTION}


def test_friends_of_10_introduced_at_c_levels():
    assert not level_definition("soroban", "B3").permits(ExerciseType.FRIENDS_OF_10_ADDITION)
    assert level_definition("soroban", "C1").permits(ExerciseType.FRIENDS_OF_10_SUBTRACTION)


def test_vedic_levels_carry_their_sutras():
    v1 = level_definition("vedic", "V1")
    assert v1.sutras == ("ekadhikina_purvena",)
    v4 = level_definition("vedic", "V4")
    assert "paravartya_yojayet" in v4.sutras


def test_unknown_level_lists_valid_codes():
    with pytest.raises(ConfigurationError) as exc:
        level_definition("vedic", "V9")
    assert exc.value.code == "configuration_error"
    assert exc.value.details["valid_levels"] == ["V1", "V2", "V3", "V4", "V5"]


def test_unknown_curriculum_rejected():
    with pytest.raises(ConfigurationError, match="Invalid curriculum"):
        ordered_levels("abacus")


def test_type_catalog_is_partitioned_by_curriculum():
    seen = set()
    for curriculum in Curriculum:
        catalog = exercise_type_catalog(curriculum)
        assert catalog
        assert not seen & set(catalog)
        seen |= set(catalog)
        for exercise_type, info in catalog.items():
            assert curriculum_of(exercise_type) == curriculum
            assert info.skills
    assert seen == set(ExerciseType)


def test_every_level_type_belongs_to_its_curriculum():
    for curriculum in Curriculum:
        for code in ordered_levels(curriculum):
            definition = level_definition(curriculum, code)
            assert definition.exercise_types
            assert all(curriculum_of(t) == curriculum for t in definition.exercise_types)


def test_age_groups():
    assert levels_for_age_group("under_7", "soroban") == ("A1", "A2")
    assert levels_for_age_group("over_12", "vedic") == ("V3", "V4", "V5")
    assert levels_for_age_group("under_7", "vedic") is None


def test_area_types_resolves_operations_and_tags():
    b1 = level_definition("soroban", "B1")
    assert area_types(b1, "friends_of_5") == [
        ExerciseType.FRIENDS_OF_5_ADDITION,
        ExerciseType.FRIENDS_OF_5_SUBTRACTION,
    ]
    assert area_types(b1, "simple_addition") == [ExerciseType.SIMPLE_ADDITION]
    # not yet taught at B1
    assert area_types(b1, "friends_of_10") == []
    assert area_types(b1, "nonsense") == []
