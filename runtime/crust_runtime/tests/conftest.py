"""
Pytest configuration and fixtures for crust_runtime tests.
"""

import os
import sys

import pytest

# Add grandparent directory to path for imports (to find crust_runtime package)
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from crust_runtime import Project, RuntimeConfig


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "slow: marks tests that tick a project for many frames (deselect with '-m \"not slow\"')"
    )


@pytest.fixture
def make_project():
    """Factory for quiet projects; keyword arguments become RuntimeConfig fields"""
    def factory(**settings):
        settings.setdefault('echo_diagnostics', False)
        return Project(RuntimeConfig(**settings))
    return factory


@pytest.fixture
def project(make_project):
    return make_project()


@pytest.fixture
def make_sprite(project):
    """Add a sprite to the default project from source"""
    def factory(source, name="Sprite", **kwargs):
        return project.add_sprite(name, source, **kwargs)
    return factory


@pytest.fixture
def run_ticks(make_project):
    """Build a one-sprite project, run it, and return the sprite"""
    def runner(source, ticks=1, **settings):
        proj = make_project(**settings)
        sprite = proj.add_sprite("Sprite", source)
        proj.run(ticks)
        return sprite
    return runner
