"""Tests for Stage 5: Pattern detectors."""

import pytest

from mythic_analyzer.analysis.graph import build_dependency_graph
from mythic_analyzer.analysis.models import ContextKind, PatternKind

from tests.fixtures.documents import (
    ARCANE_DOC, CHAIN_DOC, FIREBALL_DOC, NAMESPACE_DOC, ZOMBIE_DOC,
    make_document, make_mob, make_skill,
)


@pytest.fixture
def analyze_units(loader, line_analyzer):
    def _analyze(text, context=None):
        doc = loader.load(text, context)
        return line_analyzer.analyze_all(doc.entries)
    return _analyze


def _names(group):
    return [m.name for m in group.members]


class TestLifecycleFamilies:
    def test_explicit_callbacks(self, detector, analyze_units):
        units = analyze_units(FIREBALL_DOC)
        claimed = set()
        groups = detector.detect_lifecycle_families(units, claimed)

        assert len(groups) == 1
        group = groups[0]
        assert group.kind == PatternKind.LIFECYCLE_SUFFIXES
        assert _names(group) == ["Fireball", "Fireball-Tick", "Fireball-Hit"]
        assert group.confidence == 0.95
        assert group.suggested_name == "Fireball"
        assert claimed == {"Fireball", "Fireball-Tick", "Fireball-Hit"}

    def test_naming_only(self, detector, analyze_units):
        units = analyze_units(make_document({
            "Nova": make_skill(["damage{a=5} @PlayersInRadius{r=5}"]),
            "Nova-Tick": make_skill(["particles{p=flame} @self"]),
            "Nova_End": make_skill(["sound{s=block.glass.break} @self"]),
        }))
        groups = detector.detect_lifecycle_families(units, set())

        assert len(groups) == 1
        assert _names(groups[0]) == ["Nova", "Nova-Tick", "Nova_End"]
        assert groups[0].confidence == 0.92

    def test_callback_to_missing_unit_uses_naming(self, detector, analyze_units):
        units = analyze_units(make_document({
            "Storm": make_skill(["projectile{onHit=Elsewhere} @target"]),
            "Storm-Start": make_skill(["sound{s=entity.lightning_bolt.thunder} @self"]),
        }))
        groups = detector.detect_lifecycle_families(units, set())

        assert _names(groups[0]) == ["Storm", "Storm-Start"]
        assert groups[0].confidence == 0.92

    def test_claimed_units_skipped(self, detector, analyze_units):
        units = analyze_units(FIREBALL_DOC)
        groups = detector.detect_lifecycle_families(units, {"Fireball-Tick"})
        assert _names(groups[0]) == ["Fireball", "Fireball-Hit"]

    def test_single_member_not_grouped(self, detector, analyze_units):
        units = analyze_units(make_document({
            "Lonely": make_skill(["projectile{onTick=Nowhere} @target"]),
        }))
        assert detector.detect_lifecycle_families(units, set()) == []


class TestVariantFamilies:
    def test_dummy_variant(self, detector, analyze_units):
        units = analyze_units(ZOMBIE_DOC)
        claimed = set()
        groups = detector.detect_variant_families(units, claimed)

        assert len(groups) == 1
        assert groups[0].kind == PatternKind.MOB_VARIANT_FAMILY
        assert _names(groups[0]) == ["ZOMBIE_BOMBER", "ZOMBIE_BOMBER_DUMMY"]
        assert groups[0].confidence == 0.95
        assert groups[0].suggested_name == "Zombie Bomber"
        assert "ZOMBIE_HORDE" not in claimed

    def test_several_marked_variants(self, detector, analyze_units):
        units = analyze_units(make_document({
            "BOSS": make_mob(),
            "BOSS_DUMMY": make_mob("ARMOR_STAND"),
            "BOSS_DUMMY_2": make_mob("ARMOR_STAND"),
        }))
        groups = detector.detect_variant_families(units, set())
        assert _names(groups[0]) == ["BOSS", "BOSS_DUMMY", "BOSS_DUMMY_2"]

    def test_nested_bases_keep_their_own_variants(self, detector, analyze_units):
        units = analyze_units(make_document({
            "ZOMBIE": make_mob(),
            "ZOMBIE_DUMMY": make_mob("ARMOR_STAND"),
            "ZOMBIE_BOMBER": make_mob(),
            "ZOMBIE_BOMBER_DUMMY": make_mob("ARMOR_STAND"),
        }))
        groups = detector.detect_variant_families(units, set())

        assert [_names(g) for g in groups] == [
            ["ZOMBIE", "ZOMBIE_DUMMY"],
            ["ZOMBIE_BOMBER", "ZOMBIE_BOMBER_DUMMY"],
        ]

    def test_variant_without_base(self, detector, analyze_units):
        units = analyze_units(make_document({
            "LONELY_DUMMY": make_mob(),
            "OTHER": make_mob(),
        }))
        assert detector.detect_variant_families(units, set()) == []

    @pytest.mark.parametrize("name,base", [
        ("ZOMBIE_BOMBER_DUMMY", "ZOMBIE_BOMBER"),
        ("ORC_DUMMY_2", "ORC"),
        ("Orc-dummy", "Orc"),
        ("DUMMY_ORC", "ORC"),
    ])
    def test_variant_bases(self, detector, name, base):
        assert detector.variant_bases(name)[0] == base


class TestDocumentPrefix:
    def test_long_shared_prefix(self, detector, analyze_units):
        units = analyze_units(ARCANE_DOC)
        groups = detector.detect_document_prefix(units, set())

        assert len(groups) == 1
        assert groups[0].kind == PatternKind.DOCUMENT_PREFIX
        assert groups[0].confidence == 0.98
        assert groups[0].suggested_name == "Arcane"
        assert len(groups[0].members) == 3

    def test_namespace_token_rejected(self, detector, analyze_units):
        units = analyze_units(NAMESPACE_DOC)
        assert detector.detect_document_prefix(units, set()) == []

    def test_namespace_plus_short_word_rejected(self, detector, analyze_units):
        units = analyze_units(make_document({
            "CR_Fire1": make_skill(),
            "CR_Fire2": make_skill(),
        }))
        assert detector.detect_document_prefix(units, set()) == []

    def test_namespace_dropped_from_name(self, detector, analyze_units):
        units = analyze_units(make_document({
            "CR_ArcaneMissile": make_skill(),
            "CR_ArcaneBurst": make_skill(),
        }))
        groups = detector.detect_document_prefix(units, set())
        assert groups[0].suggested_name == "Arcane"

    def test_short_prefix_rejected(self, detector, analyze_units):
        units = analyze_units(make_document({
            "Fire1": make_skill(),
            "Fire2": make_skill(),
        }))
        assert detector.detect_document_prefix(units, set()) == []

    def test_needs_two_unclaimed(self, detector, analyze_units):
        units = analyze_units(ARCANE_DOC)
        assert detector.detect_document_prefix(units, {"ArcaneMissile", "ArcaneBurst"}) == []


class TestCallChains:
    def test_chain_from_root(self, detector, analyze_units):
        units = analyze_units(CHAIN_DOC)
        graph = build_dependency_graph(units)
        groups = detector.detect_call_chains(units, graph, set())

        assert len(groups) == 1
        assert groups[0].kind == PatternKind.CALL_CHAIN
        assert _names(groups[0]) == ["Summon", "Circle", "Blast"]
        assert groups[0].confidence == 0.95
        assert groups[0].suggested_name == "Summon"

    def test_name_from_common_prefix(self, detector, analyze_units):
        units = analyze_units(make_document({
            "Storm-Main": make_skill(["skill{s=Storm-Bolt} @target"]),
            "Storm-Bolt": make_skill(["damage{a=5} @target"]),
        }))
        graph = build_dependency_graph(units)
        groups = detector.detect_call_chains(units, graph, set())
        assert groups[0].suggested_name == "Storm"

    def test_claimed_members_excluded(self, detector, analyze_units):
        units = analyze_units(CHAIN_DOC)
        graph = build_dependency_graph(units)
        groups = detector.detect_call_chains(units, graph, {"Circle"})
        assert _names(groups[0]) == ["Summon", "Blast"]

    def test_cycle_falls_back_to_busiest_node(self, detector, analyze_units):
        units = analyze_units(make_document({
            "Ping": make_skill(["skill{s=Pong} @self"]),
            "Pong": make_skill(["skill{s=Ping} @self"]),
        }))
        graph = build_dependency_graph(units)
        groups = detector.detect_call_chains(units, graph, set())
        assert _names(groups[0]) == ["Ping", "Pong"]

    def test_no_edges(self, detector, analyze_units):
        units = analyze_units(NAMESPACE_DOC)
        graph = build_dependency_graph(units)
        assert detector.detect_call_chains(units, graph, set()) == []


class TestResidualNaming:
    def test_prefix_groups(self, detector, analyze_units):
        units = analyze_units(make_document({
            "Summon_Skeleton": make_skill(["summon{t=SKELETON} @self"]),
            "Summon_Zombie": make_skill(["summon{t=ZOMBIE} @self"]),
            "Heal": make_skill(["heal{a=5} @self"]),
        }))
        groups = detector.detect_residual_prefixes(units, set())

        assert len(groups) == 1
        assert _names(groups[0]) == ["Summon_Skeleton", "Summon_Zombie"]
        assert groups[0].suggested_name == "Summon"
        assert groups[0].confidence == pytest.approx(0.7)

    def test_prefix_confidence_capped(self, detector):
        assert detector._prefix_confidence(10) == 0.9

    def test_suffix_groups_anchor_on_base(self, detector, analyze_units):
        units = analyze_units(make_document({
            "Frost-Projectile": make_skill(),
            "Heal": make_skill(),
            "frost_Cast": make_skill(),
            "Frost": make_skill(),
        }))
        groups = detector.detect_residual_suffixes(units, set())

        assert len(groups) == 1
        assert groups[0].kind == PatternKind.LIFECYCLE_SUFFIXES
        assert _names(groups[0]) == ["Frost-Projectile", "frost_Cast", "Frost"]
        assert groups[0].confidence == 0.85
        assert groups[0].suggested_name == "Frost"

    def test_shared_suffix_alone_is_not_a_family(self, detector, analyze_units):
        units = analyze_units(make_document({
            "Frost-Projectile": make_skill(),
            "Ab-Projectile": make_skill(),
        }))
        assert detector.detect_residual_prefixes(units, set()) == []
        assert detector.detect_residual_suffixes(units, set()) == []

    def test_suffix_groups_skip_claimed(self, detector, analyze_units):
        units = analyze_units(make_document({
            "Frost": make_skill(),
            "Frost-Projectile": make_skill(),
        }))
        assert detector.detect_residual_suffixes(units, {"Frost"}) == []


class TestNamingPatterns:
    def test_skill_patterns(self, detector, analyze_units):
        units = analyze_units(FIREBALL_DOC)
        patterns = detector.detect_naming_patterns(units, ContextKind.SKILL_FILE)
        kinds = {p.kind: p for p in patterns}

        prefix = kinds[PatternKind.SHARED_PREFIX]
        assert prefix.anchor == "Fireball"
        assert prefix.member_names == ["Fireball", "Fireball-Tick", "Fireball-Hit"]
        lifecycle = kinds[PatternKind.LIFECYCLE_SUFFIXES]
        assert lifecycle.member_names == ["Fireball", "Fireball-Tick", "Fireball-Hit"]

    def test_mob_patterns(self, detector, analyze_units):
        units = analyze_units(ZOMBIE_DOC)
        patterns = detector.detect_naming_patterns(units, ContextKind.MOB)
        assert len(patterns) == 1
        assert patterns[0].kind == PatternKind.MOB_VARIANT_FAMILY
        assert patterns[0].member_names == ["ZOMBIE_BOMBER", "ZOMBIE_BOMBER_DUMMY"]


def test_suggest_group_name(detector):
    assert detector.suggest_group_name(["Storm-Main", "Storm-Bolt"], "Storm-Main") == "Storm"
    assert detector.suggest_group_name(["Ab", "Cd"], "Blast-Tick") == "Blast"
