"""pytest plugin providing visual comparison fixtures."""

from __future__ import annotations

import os

import pytest

from visual_qa.comparator.visual_comparator import VisualComparator
from visual_qa.models.config import VisualConfig


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("visual-qa")
    group.addoption(
        "--update-visual-baseline",
        action="store_true",
        default=False,
        help="Overwrite visual baselines with the current captures instead of comparing",
    )
    group.addoption(
        "--visual-config",
        default=None,
        help="Path to a visual-config.json file",
    )


@pytest.fixture(scope="session")
def visual_config(request: pytest.FixtureRequest) -> VisualConfig:
    """Visual settings from --visual-config, or defaults."""
    path = request.config.getoption("--visual-config")
    config = VisualConfig.load(path) if path else VisualConfig()
    # Relative artifact dirs resolve against the rootdir, not the cwd
    root = request.config.rootpath
    update = {
        field: str(root / getattr(config, field))
        for field in ("baseline_dir", "actual_dir", "diff_dir")
        if not os.path.isabs(getattr(config, field))
    }
    if request.config.getoption("--update-visual-baseline"):
        update["update_baseline"] = True
    return config.model_copy(update=update)


@pytest.fixture
def visual_comparator(visual_config: VisualConfig) -> VisualComparator:
    return VisualComparator.from_config(visual_config)
