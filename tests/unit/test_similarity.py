"""Tests for template similarity and duplicate detection."""

import pytest

from mythic_analyzer.analysis.analyzer_config import SimilarityConfig
from mythic_analyzer.templates.records import TemplateRecord, TemplateSection
from mythic_analyzer.templates.similarity import (
    calculate_similarity, find_differences, find_duplicates,
    line_overlap_score, name_score,
)


def _record(name, category="combat", lines=None, sections=None):
    return TemplateRecord(
        name=name,
        category=category,
        skill_lines=lines if lines is not None else [],
        sections=sections or [],
    )


@pytest.fixture
def candidate():
    return _record("Fireball", lines=["damage{a=5} @target", "ignite{ticks=60} @target"])


@pytest.fixture
def existing():
    return [
        _record("Healing", category="support", lines=["heal{a=5} @self"]),
        _record("Frostbolt"),
        _record("Fireball Mk2", lines=["damage{a=5} @target"]),
        _record("Fireball", lines=["damage{a=5} @target", "ignite{ticks=60} @target"]),
    ]


class TestCalculateSimilarity:
    def test_identical_records(self, candidate):
        copy = TemplateRecord.from_dict(candidate.to_dict())
        assert calculate_similarity(candidate, copy) == 1.0

    def test_symmetric(self, candidate, existing):
        for record in existing:
            assert calculate_similarity(candidate, record) == calculate_similarity(record, candidate)

    def test_partial_match(self, candidate, existing):
        # substring name 20 + category 20 + sections 20 + overlap 15
        assert calculate_similarity(candidate, existing[2]) == pytest.approx(0.75)

    def test_unrelated(self, candidate, existing):
        # only the section counts agree
        assert calculate_similarity(candidate, existing[0]) == pytest.approx(0.2)

    def test_sections_counted(self):
        a = _record("A", sections=[TemplateSection("one"), TemplateSection("two")])
        b = _record("B")
        c = _record("C", sections=[TemplateSection(str(i)) for i in range(4)])
        config = SimilarityConfig()
        # two sections vs one counts as near, four vs one as nothing
        assert calculate_similarity(a, b) == pytest.approx(
            (config.category_match + config.section_near) / config.max_score
        )
        assert calculate_similarity(c, b) == pytest.approx(
            config.category_match / config.max_score
        )


class TestComponents:
    @pytest.mark.parametrize("a,b,expected", [
        ("Fireball", "fireball", 30),
        ("Fire", "Fireball", 20),
        ("Frostbolt", "Frostnova", 15),
        ("Frost", "Flame", 3),
        ("Heal", "Bolt", 0),
    ])
    def test_name_score(self, a, b, expected):
        assert name_score(a, b, SimilarityConfig()) == expected

    def test_line_overlap_is_multiset(self):
        a = _record("A", lines=["x", "x"])
        b = _record("B", lines=["x"])
        assert line_overlap_score(a, b, SimilarityConfig()) == 15

    def test_line_overlap_rounds_half_up(self):
        a = _record("A", lines=["shared"] + [f"a{i}" for i in range(11)])
        b = _record("B", lines=["shared"])
        # 30 * 1/12 = 2.5
        assert line_overlap_score(a, b, SimilarityConfig()) == 3

    def test_empty_lines_score_zero(self):
        assert line_overlap_score(_record("A"), _record("B", lines=["x"]), SimilarityConfig()) == 0

    def test_section_lines_included(self):
        a = _record("A", sections=[TemplateSection("s", ["x"])])
        b = _record("B", lines=["x"])
        assert line_overlap_score(a, b, SimilarityConfig()) == 30


class TestFindDuplicates:
    def test_above_threshold_sorted(self, candidate, existing):
        matches = find_duplicates(candidate, existing)
        assert [m.record.name for m in matches] == ["Fireball", "Fireball Mk2"]
        assert matches[0].similarity == 1.0
        assert matches[0].differences == []

    def test_threshold_is_exclusive(self, candidate, existing):
        matches = find_duplicates(candidate, existing, threshold=0.75)
        assert [m.record.name for m in matches] == ["Fireball"]

    def test_limit(self, candidate, existing):
        assert len(find_duplicates(candidate, existing, threshold=0.0, limit=3)) == 3
        assert len(find_duplicates(candidate, existing, threshold=0.0, limit=1)) == 1

    def test_no_existing_records(self, candidate):
        assert find_duplicates(candidate, []) == []

    def test_match_to_dict(self, candidate, existing):
        match = find_duplicates(candidate, existing)[1]
        assert match.to_dict() == {
            "name": "Fireball Mk2",
            "similarity": 0.75,
            "differences": ["Skill lines: 2 vs 1"],
        }


def test_find_differences():
    a = _record("A", lines=["x", "y"], sections=[TemplateSection("s"), TemplateSection("t")])
    b = _record("B", category="support", lines=["x"])
    assert find_differences(a, b) == [
        "Section count: 2 vs 1",
        "Skill lines: 2 vs 1",
        "Category: combat vs support",
    ]
    assert find_differences(a, a) == []
