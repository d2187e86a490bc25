"""Tests for the pytest plugin fixtures and options."""

import json

import pytest

PLUGIN = "visual_qa.pytest_plugin"

TEST_MODULE = """
from PIL import Image


class Target:
    def __init__(self, color):
        self.color = color

    def capture(self, path):
        Image.new("RGB", (4, 4), self.color).save(path, format="PNG")


def test_visual(visual_comparator):
    color = (0, 0, 255) if {blue} else (255, 0, 0)
    result = visual_comparator.assert_screenshot_matches(Target(color), "widget")
    print("STATUS=" + result.status)
"""


@pytest.fixture
def config_path(pytester):
    path = pytester.path / "visual.json"
    path.write_text(json.dumps({"baseline_dir": "shots/baseline", "actual_dir": "shots/actual",
                                "diff_dir": "shots/diff"}))
    return path


class TestPlugin:
    def test_seed_then_compare(self, pytester, config_path):
        pytester.makepyfile(test_visual=TEST_MODULE.format(blue=True))
        first = pytester.runpytest("-p", PLUGIN, "--visual-config", str(config_path), "-s")
        first.assert_outcomes(passed=1)
        first.stdout.fnmatch_lines(["*STATUS=baseline_created*"])
        assert (pytester.path / "shots" / "baseline" / "widget.png").exists()

        second = pytester.runpytest("-p", PLUGIN, "--visual-config", str(config_path), "-s")
        second.assert_outcomes(passed=1)
        second.stdout.fnmatch_lines(["*STATUS=passed*"])

    def test_mismatch_fails_test(self, pytester, config_path):
        pytester.makepyfile(test_visual=TEST_MODULE.format(blue=True))
        pytester.runpytest("-p", PLUGIN, "--visual-config", str(config_path)).assert_outcomes(passed=1)

        pytester.makepyfile(test_visual=TEST_MODULE.format(blue=False))
        result = pytester.runpytest("-p", PLUGIN, "--visual-config", str(config_path))
        result.assert_outcomes(failed=1)
        result.stdout.fnmatch_lines(["*VisualMismatchError*exceeds threshold*"])

    def test_update_flag_refreshes_baseline(self, pytester, config_path):
        pytester.makepyfile(test_visual=TEST_MODULE.format(blue=True))
        pytester.runpytest("-p", PLUGIN, "--visual-config", str(config_path)).assert_outcomes(passed=1)

        pytester.makepyfile(test_visual=TEST_MODULE.format(blue=False))
        result = pytester.runpytest(
            "-p", PLUGIN, "--visual-config", str(config_path), "--update-visual-baseline", "-s"
        )
        result.assert_outcomes(passed=1)
        result.stdout.fnmatch_lines(["*STATUS=baseline_updated*"])

    def test_defaults_without_config(self, pytester):
        pytester.makepyfile(test_visual=TEST_MODULE.format(blue=True))
        result = pytester.runpytest("-p", PLUGIN)
        result.assert_outcomes(passed=1)
        assert (pytester.path / "visual" / "baseline" / "widget.png").exists()
