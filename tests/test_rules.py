"""Tests for the Albedo combat rules."""

import pytest

from engine.errors import IncompleteRollError, InvalidRollError
from engine.rules import (
    SKILL_TOO_HIGH,
    SKILL_TOO_LOW,
    apply_result,
    attack_dice,
    attack_resolve,
    attack_result,
    attack_setup,
    awe,
    damage_dice_count,
    damage_resolve,
    defense_dice,
    effective_cover,
    injury,
    marks_to_dice,
    new_status,
    penetration_damage,
    thresholds,
    total_damage,
    validate_rolls,
)
from models.characters import (
    ActiveGifts,
    Armor,
    Character,
    Conditions,
    Gifts,
    Marks,
    Position,
    Weapon,
    WeaponRanges,
)
from models.combat import DamageResult, Decided, DicePool, FlatAttack, Unavailable
from models.enums import AttackResult, Cover, Mode, Range, Skill, WeaponAction, WoundState


def _make_weapon(
    skill: Skill = Skill.PISTOL,
    action: WeaponAction = WeaponAction.SEMI,
    ranges: dict | None = None,
    base_damage: int = 8,
    pen_damage: int | None = 7,
    **extra,
) -> Weapon:
    """Helper to create a test weapon."""
    return Weapon(
        name=f"Test {skill.value}",
        skill=skill,
        action=action,
        ranges=WeaponRanges(**(ranges or {"C": 5, "S": 10, "M": 40, "L": 230, "X": 1400})),
        base_damage=base_damage,
        pen_damage=pen_damage,
        **extra,
    )


def _make_character(
    name: str = "Tester",
    marks: int = 3,
    mode: Mode = Mode.ROLL,
    weapon: Weapon | None = None,
    body: int = 7,
    injury: int = 0,
    max_cover: Cover = Cover.NONE,
    concealment: Cover = Cover.NONE,
    wound_state: WoundState = WoundState.UNINJURED,
    deflection: int = 3,
    threshold: int = 0,
    **extra,
) -> Character:
    """Helper to create a test character with marks in its weapon's skill."""
    weapon = weapon or _make_weapon()
    return Character(
        name=name,
        body=body,
        injury=injury,
        marks=Marks(**{weapon.skill.value.lower(): marks}),
        mode=mode,
        wound_state=wound_state,
        max_cover=max_cover,
        concealment=concealment,
        morale=5,
        weapon=weapon,
        armor=Armor(name="Test Armor", deflection=deflection, threshold=threshold),
        **extra,
    )


class TestMarksToDice:
    """Tests for marks_to_dice()."""

    def test_no_marks(self):
        assert marks_to_dice(0) == 0

    def test_below_one(self):
        assert marks_to_dice(0.5) == 0

    def test_one_mark(self):
        assert marks_to_dice(1) == 4

    def test_three_marks(self):
        assert marks_to_dice(3) == 8

    def test_fractional_rounds_down(self):
        assert marks_to_dice(2.5) == 6

    def test_capped_at_d12(self):
        assert marks_to_dice(5) == 12
        assert marks_to_dice(8) == 12


class TestAttackDice:
    """Tests for attack_dice() across modes."""

    def test_rote_is_flat(self):
        dice = attack_dice(_make_character(marks=5, mode=Mode.ROTE))
        assert dice == FlatAttack(value=6)

    def test_roll_single_die(self):
        dice = attack_dice(_make_character(marks=3, mode=Mode.ROLL))
        assert dice == DicePool(dice=[8])

    def test_push_two_dice(self):
        dice = attack_dice(_make_character(marks=3, mode=Mode.PUSH))
        assert dice == DicePool(dice=[8, 8])

    def test_risk_adds_a_mark(self):
        dice = attack_dice(_make_character(marks=3, mode=Mode.RISK))
        assert dice == DicePool(dice=[10])

    def test_risk_unavailable_at_five_marks(self):
        dice = attack_dice(_make_character(marks=5, mode=Mode.RISK))
        assert dice == Unavailable(reason=SKILL_TOO_HIGH)

    def test_risk_with_no_marks(self):
        dice = attack_dice(_make_character(marks=0, mode=Mode.RISK))
        assert dice == DicePool(dice=[4])

    def test_breeze_halves_marks(self):
        dice = attack_dice(_make_character(marks=6, mode=Mode.BREEZE))
        assert dice == DicePool(dice=[8, 8])

    def test_breeze_unavailable_at_two_marks(self):
        dice = attack_dice(_make_character(marks=2, mode=Mode.BREEZE))
        assert dice == Unavailable(reason=SKILL_TOO_LOW)

    def test_roll_with_no_marks_unavailable(self):
        dice = attack_dice(_make_character(marks=0, mode=Mode.ROLL))
        assert dice == Unavailable(reason=SKILL_TOO_LOW)

    def test_marks_clamped_at_eight(self):
        dice = attack_dice(_make_character(marks=12, mode=Mode.ROTE))
        assert dice == FlatAttack(value=9)

    def test_uses_marks_for_weapon_skill(self):
        weapon = _make_weapon(skill=Skill.LONGARM)
        char = Character(
            name="Split",
            body=7,
            morale=5,
            marks=Marks(longarm=1, pistol=5),
            weapon=weapon,
            armor=Armor(name="None", deflection=3, threshold=0),
        )
        assert attack_dice(char) == DicePool(dice=[4])


class TestEffectiveCover:
    """Tests for effective_cover()."""

    def test_capped_by_weapon_skill(self):
        attacker = _make_character()
        defender = _make_character(
            max_cover=Cover.THREE_QUARTER,
            weapon=_make_weapon(skill=Skill.LONGARM),
        )
        assert effective_cover(attacker, defender, Range.SHORT) == Cover.HALF

    def test_hiding_ignores_cap(self):
        attacker = _make_character()
        defender = _make_character(
            max_cover=Cover.THREE_QUARTER,
            weapon=_make_weapon(skill=Skill.LONGARM),
            conditions=Conditions(hiding=True),
        )
        assert effective_cover(attacker, defender, Range.SHORT) == Cover.THREE_QUARTER

    def test_melee_at_close_against_melee_defender(self):
        knife = _make_weapon(skill=Skill.MELEE, action=WeaponAction.MELEE, ranges={"C": 1})
        attacker = _make_character(weapon=knife)
        defender = _make_character(max_cover=Cover.HALF, weapon=knife)
        assert effective_cover(attacker, defender, Range.CLOSE) == Cover.QUARTER

    def test_melee_at_close_against_gunman(self):
        knife = _make_weapon(skill=Skill.MELEE, action=WeaponAction.MELEE, ranges={"C": 1})
        attacker = _make_character(weapon=knife)
        defender = _make_character(max_cover=Cover.HALF)
        assert effective_cover(attacker, defender, Range.CLOSE) == Cover.NONE


class TestDefenseDice:
    """Tests for defense_dice() and the setup stage."""

    def test_pistol_defender_in_half_cover(self):
        attacker = _make_character(marks=3)
        defender = _make_character(max_cover=Cover.HALF)
        setup = attack_setup(attacker, defender, distance=3)
        assert setup.range == Range.CLOSE
        assert setup.attack_dice == DicePool(dice=[8])
        # Range die, cover die, then concealment raised to match cover
        assert setup.defense_dice == DicePool(dice=[4, 10, 10])

    def test_rote_beats_every_die(self):
        attacker = _make_character(marks=5, mode=Mode.ROTE)
        defender = _make_character()
        setup = attack_setup(attacker, defender, distance=3)
        assert setup.attack_dice == FlatAttack(value=6)
        assert setup.defense_dice == Decided(result=AttackResult.HIT)

    def test_rote_not_decided_when_die_can_match(self):
        attacker = _make_character(marks=3, mode=Mode.ROTE)
        defender = _make_character()
        setup = attack_setup(attacker, defender, distance=3)
        assert setup.defense_dice == DicePool(dice=[4])

    def test_unavailable_attack_is_decided_miss(self):
        attacker = _make_character(marks=0)
        defender = _make_character()
        setup = attack_setup(attacker, defender, distance=3)
        assert setup.defense_dice == Decided(result=AttackResult.MISS)

    def test_out_of_range_is_decided_miss(self):
        attacker = _make_character()
        defender = _make_character()
        setup = attack_setup(attacker, defender, distance=5000)
        assert setup.range == Range.OVER
        assert setup.defense_dice == Decided(result=AttackResult.MISS)

    def test_total_cover_is_decided_miss(self):
        attacker = _make_character()
        defender = _make_character(
            max_cover=Cover.TOTAL,
            conditions=Conditions(hiding=True),
        )
        dice = defense_dice(attacker, defender, Range.SHORT, DicePool(dice=[8]))
        assert dice == Decided(result=AttackResult.MISS)

    def test_total_concealment_adds_two_d12(self):
        attacker = _make_character()
        defender = _make_character(concealment=Cover.TOTAL)
        dice = defense_dice(attacker, defender, Range.SHORT, DicePool(dice=[8]))
        assert dice == DicePool(dice=[6, 12, 12])

    def test_aiming_steps_everything_down(self):
        attacker = _make_character(conditions=Conditions(aiming=True))
        defender = _make_character(max_cover=Cover.HALF)
        dice = defense_dice(attacker, defender, Range.MEDIUM, DicePool(dice=[8]))
        # Medium -> Short, Half -> Quarter for both cover and concealment
        assert dice == DicePool(dice=[6, 8, 8])

    def test_aiming_does_not_help_melee(self):
        knife = _make_weapon(skill=Skill.MELEE, action=WeaponAction.MELEE, ranges={"C": 1})
        attacker = _make_character(weapon=knife, conditions=Conditions(aiming=True))
        defender = _make_character()
        dice = defense_dice(attacker, defender, Range.CLOSE, DicePool(dice=[8]))
        assert dice == DicePool(dice=[4])

    def test_melee_at_close_uses_raw_concealment(self):
        knife = _make_weapon(skill=Skill.MELEE, action=WeaponAction.MELEE, ranges={"C": 1})
        attacker = _make_character(weapon=knife)
        defender = _make_character(weapon=knife, max_cover=Cover.HALF)
        dice = defense_dice(attacker, defender, Range.CLOSE, DicePool(dice=[8]))
        assert dice == DicePool(dice=[4, 8])

    def test_distance_measured_from_positions(self):
        attacker = _make_character(position=Position(x=0, y=0))
        defender = _make_character(position=Position(x=3, y=4))
        setup = attack_setup(attacker, defender)
        assert setup.distance == 5
        assert setup.range == Range.CLOSE


class TestValidateRolls:
    """Tests for validate_rolls()."""

    def test_complete(self):
        assert validate_rolls("Attack roll", [8, 8], [3, 7]) == [3, 7]

    def test_extra_values_ignored(self):
        assert validate_rolls("Attack roll", [8], [3, 7]) == [3]

    def test_missing_values(self):
        with pytest.raises(IncompleteRollError, match="needs 2 value"):
            validate_rolls("Attack roll", [8, 8], [3])

    def test_zero_means_unrolled(self):
        with pytest.raises(IncompleteRollError):
            validate_rolls("Attack roll", [8, 8], [3, 0])

    def test_value_above_die(self):
        with pytest.raises(InvalidRollError, match="d8"):
            validate_rolls("Attack roll", [8], [9])

    def test_empty_pool(self):
        assert validate_rolls("Damage roll", [], []) == []


class TestAttackResult:
    """Tests for attack_result()."""

    def test_miss(self):
        assert attack_result(_make_character(), [3], [5, 2]) == AttackResult.MISS

    def test_tie(self):
        assert attack_result(_make_character(), [5], [5, 2]) == AttackResult.TIE

    def test_hit(self):
        assert attack_result(_make_character(), [6], [5, 2]) == AttackResult.HIT

    def test_crit_needs_two_dice_above(self):
        assert attack_result(_make_character(), [7, 6], [5, 2]) == AttackResult.CRIT

    def test_one_die_above_is_hit(self):
        assert attack_result(_make_character(), [7, 4], [5, 2]) == AttackResult.HIT

    def test_flat_value_never_crits(self):
        assert attack_result(_make_character(), 9, [5]) == AttackResult.HIT

    def test_semi_auto_expert_converts_tie(self):
        attacker = _make_character(gifts=Gifts(semi_auto_expert=True))
        assert attack_result(attacker, [5], [5]) == AttackResult.HIT

    def test_semi_auto_expert_needs_semi_or_full(self):
        rifle = _make_weapon(action=WeaponAction.SINGLE)
        attacker = _make_character(weapon=rifle, gifts=Gifts(semi_auto_expert=True))
        assert attack_result(attacker, [5], [5]) == AttackResult.TIE


class TestDamageDiceCount:
    """Tests for damage_dice_count()."""

    def test_miss_gets_none(self):
        assert damage_dice_count(
            _make_character(), _make_character(), AttackResult.MISS, Range.SHORT
        ) == 0

    def test_tie_gets_none(self):
        assert damage_dice_count(
            _make_character(), _make_character(), AttackResult.TIE, Range.SHORT
        ) == 0

    def test_hit_on_uninjured(self):
        assert damage_dice_count(
            _make_character(), _make_character(), AttackResult.HIT, Range.SHORT
        ) == 1

    def test_wounds_add_dice_capped(self):
        defender = _make_character(wound_state=WoundState.DEVASTATED)
        assert damage_dice_count(
            _make_character(), defender, AttackResult.HIT, Range.SHORT
        ) == 4

    def test_crit_and_helpless(self):
        defender = _make_character(conditions=Conditions(helpless=True))
        assert damage_dice_count(
            _make_character(), defender, AttackResult.CRIT, Range.SHORT
        ) == 3

    def test_shotgun_scales_with_range(self):
        shotgun = _make_weapon(skill=Skill.LONGARM, action=WeaponAction.SINGLE, shotgun=True)
        attacker = _make_character(weapon=shotgun)
        defender = _make_character(wound_state=WoundState.CRIPPLED)
        assert damage_dice_count(attacker, defender, AttackResult.HIT, Range.CLOSE) == 4
        assert damage_dice_count(attacker, defender, AttackResult.HIT, Range.LONG) == 1

    def test_sniper_master(self):
        attacker = _make_character(active_gifts=ActiveGifts(sniper_master=True, sniper_expert=True))
        assert damage_dice_count(
            attacker, _make_character(), AttackResult.HIT, Range.LONG
        ) == 4

    def test_sniper_expert(self):
        attacker = _make_character(active_gifts=ActiveGifts(sniper_expert=True))
        assert damage_dice_count(
            attacker, _make_character(), AttackResult.HIT, Range.LONG
        ) == 2

    def test_sniper_gifts_ignored_for_melee(self):
        knife = _make_weapon(skill=Skill.MELEE, action=WeaponAction.MELEE, ranges={"C": 1})
        attacker = _make_character(weapon=knife, active_gifts=ActiveGifts(sniper_master=True))
        assert damage_dice_count(
            attacker, _make_character(), AttackResult.HIT, Range.CLOSE
        ) == 1


class TestAttackResolve:
    """Tests for attack_resolve()."""

    def test_rolled_attack(self):
        setup = attack_setup(_make_character(), _make_character(), distance=3)
        resolved = attack_resolve(setup, [6], [3])
        assert resolved.result == AttackResult.HIT
        assert resolved.attack_roll == [6]
        assert resolved.damage_dice_count == 1

    def test_decided_needs_no_rolls(self):
        setup = attack_setup(
            _make_character(marks=5, mode=Mode.ROTE), _make_character(), distance=3
        )
        resolved = attack_resolve(setup, [], [])
        assert resolved.result == AttackResult.HIT
        assert resolved.attack_roll == 6
        assert resolved.defense_roll == []

    def test_missing_defense_roll(self):
        setup = attack_setup(_make_character(), _make_character(), distance=3)
        with pytest.raises(IncompleteRollError, match="Defense roll"):
            attack_resolve(setup, [6], [])


class TestDamage:
    """Tests for damage totals, thresholds and wound states."""

    def test_total_damage_with_penetration(self):
        assert total_damage(10, 5, 11, [15, 3]) == 30

    def test_total_damage_no_roll(self):
        assert total_damage(10, 5, 11, []) == 0

    def test_total_damage_equal_to_deflection_does_not_penetrate(self):
        assert total_damage(10, 5, 11, [11]) == 21

    def test_penetration_uses_weapon(self):
        assert penetration_damage(_make_character()) == 7

    def test_melee_penetration_uses_remaining_body(self):
        knife = _make_weapon(skill=Skill.MELEE, action=WeaponAction.MELEE, ranges={"C": 1})
        assert penetration_damage(_make_character(weapon=knife, body=7, injury=2)) == 5

    def test_thresholds(self):
        defender = _make_character(body=7, threshold=5)
        assert thresholds(defender) == [19, 29, 39, 59]

    def test_thresholds_tough(self):
        defender = _make_character(body=7, gifts=Gifts(tough=True))
        assert thresholds(defender) == [19, 29, 39, 59]

    def test_thresholds_very_tough_beats_tough(self):
        defender = _make_character(body=7, gifts=Gifts(tough=True, very_tough=True))
        assert thresholds(defender)[0] == 24

    def test_thresholds_use_remaining_body(self):
        defender = _make_character(body=7, injury=3)
        assert thresholds(defender)[0] == 8

    def test_new_status(self):
        defender = _make_character(body=7)   # thresholds 14, 24, 34, 54
        assert new_status(defender, 13) == WoundState.UNINJURED
        assert new_status(defender, 14) == WoundState.WOUNDED
        assert new_status(defender, 30) == WoundState.CRIPPLED
        assert new_status(defender, 34) == WoundState.INCAPACITATED
        assert new_status(defender, 54) == WoundState.DEVASTATED

    def test_awe(self):
        defender = _make_character(conditions=Conditions(surprised=True))
        assert awe(defender, Range.CLOSE, AttackResult.HIT, WoundState.CRIPPLED) == 5

    def test_awe_from_a_miss(self):
        assert awe(_make_character(), Range.SHORT, AttackResult.MISS, WoundState.UNINJURED) == 0

    def test_injury(self):
        defender = _make_character(body=7)
        assert injury(defender, WoundState.WOUNDED) == 1
        assert injury(defender, WoundState.INCAPACITATED) == 5
        assert injury(defender, WoundState.DEVASTATED) == 7

    def test_damage_resolve(self):
        attacker = _make_character(
            weapon=_make_weapon(skill=Skill.LONGARM, base_damage=10, pen_damage=5),
        )
        defender = _make_character(deflection=11, body=7)
        setup = attack_setup(attacker, defender, distance=3)
        resolved = attack_resolve(setup, [8], [3]).model_copy(update={"damage_dice_count": 2})
        damage = damage_resolve(setup, resolved, [15, 3])
        assert damage.total_damage == 30
        assert damage.new_status == WoundState.CRIPPLED
        assert damage.injury == 3
        assert damage.awe == 1 + 1 + 2

    def test_damage_resolve_incomplete(self):
        setup = attack_setup(_make_character(), _make_character(), distance=3)
        resolved = attack_resolve(setup, [8], [3])
        with pytest.raises(IncompleteRollError, match="Damage roll"):
            damage_resolve(setup, resolved, [])


class TestApplyResult:
    """Tests for apply_result()."""

    def _result(self, status: WoundState, injury: int, awe: int) -> DamageResult:
        return DamageResult(total_damage=0, new_status=status, injury=injury, awe=awe)

    def test_accumulates(self):
        defender = _make_character(body=7)
        updated = apply_result(defender, self._result(WoundState.WOUNDED, 1, 2))
        assert updated.wound_state == WoundState.WOUNDED
        assert updated.injury == 1
        assert updated.awe == 2
        assert defender.injury == 0

    def test_wound_state_never_improves(self):
        defender = _make_character(wound_state=WoundState.CRIPPLED, injury=3)
        updated = apply_result(defender, self._result(WoundState.WOUNDED, 1, 0))
        assert updated.wound_state == WoundState.CRIPPLED
        assert updated.injury == 4

    def test_injury_capped_at_body(self):
        defender = _make_character(body=7, injury=5)
        updated = apply_result(defender, self._result(WoundState.INCAPACITATED, 5, 0))
        assert updated.injury == 7

    def test_awe_capped_at_morale(self):
        defender = _make_character()
        updated = apply_result(defender, self._result(WoundState.UNINJURED, 0, 9))
        assert updated.awe == 5

    def test_repeated_misses_leave_wounds_unchanged(self):
        attacker = _make_character(marks=3)
        defender = _make_character(name="Frail", body=0)
        for _ in range(3):
            setup = attack_setup(attacker, defender, distance=3)
            resolved = attack_resolve(setup, [1], [4])
            assert resolved.result == AttackResult.MISS
            damage = damage_resolve(setup, resolved, [])
            assert damage.new_status == WoundState.UNINJURED
            defender = apply_result(defender, damage)
            assert defender.wound_state == WoundState.UNINJURED
            assert defender.injury == 0
