"""
Shared pytest fixtures for all tests.
"""

import sys
from pathlib import Path

import pytest

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from mythic_analyzer.analysis.analyzer_config import AnalyzerConfig
from mythic_analyzer.analysis.line_analyzer import LineAnalyzer
from mythic_analyzer.analysis.loader import StructuralLoader
from mythic_analyzer.analysis.patterns import PatternDetector
from mythic_analyzer.analysis.pipeline import SkillAnalysisEngine
from mythic_analyzer.analysis.vocabulary import get_default_vocabulary


# =============================================================================
# Engine Fixtures
# =============================================================================

@pytest.fixture
def vocabulary():
    """The packaged vocabulary."""
    return get_default_vocabulary()


@pytest.fixture
def engine(vocabulary):
    """Engine with stock configuration."""
    return SkillAnalysisEngine(config=AnalyzerConfig(), vocabulary=vocabulary)


@pytest.fixture
def loader(vocabulary):
    return StructuralLoader(vocabulary)


@pytest.fixture
def line_analyzer(vocabulary):
    return LineAnalyzer(vocabulary)


@pytest.fixture
def detector(vocabulary):
    return PatternDetector(vocabulary)


# =============================================================================
# Config Fixtures
# =============================================================================

@pytest.fixture
def config_home(tmp_path, monkeypatch):
    """Point XDG_CONFIG_HOME at a temporary directory."""
    home = tmp_path / "xdg"
    home.mkdir()
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home))
    return home
