"""Tests for the console module."""

import re
import unittest
from unittest.mock import patch

from bluefin_releases import console as console_module
from bluefin_releases.console import (
    BRAND_COLORS,
    BRAND_COLORS_ADAPTIVE,
    BRAND_COLORS_HEX,
    console,
    gha_error,
    gha_group,
    gha_warning,
    print_banner,
    print_dataset_summary,
    print_enrichment_summary,
    print_final_failure,
    print_final_success,
    print_step_end,
    print_step_header,
    print_summary_table,
)


ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*m")


def _plain(capture):
    return ANSI_ESCAPE.sub("", capture.get())


class TestBrandColors(unittest.TestCase):
    def test_same_keys_in_both_palettes(self):
        self.assertEqual(set(BRAND_COLORS_HEX), set(BRAND_COLORS_ADAPTIVE))
        self.assertEqual(set(BRAND_COLORS), set(BRAND_COLORS_HEX))

    def test_hex_colors_are_valid(self):
        for name, color in BRAND_COLORS_HEX.items():
            self.assertRegex(color, r"^#[0-9A-Fa-f]{6}$", name)

    def test_console_writes_to_stderr(self):
        self.assertTrue(console.stderr)


class TestLocalOutput(unittest.TestCase):
    def setUp(self):
        patcher = patch.object(console_module, "IS_GITHUB_ACTIONS", False)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_banner(self):
        with console.capture() as capture:
            print_banner("1.2.3", "legacy")
        self.assertIn("bluefin-releases v1.2.3", _plain(capture))
        self.assertIn("legacy mode", _plain(capture))

    def test_banner_unknown_version(self):
        with console.capture() as capture:
            print_banner("unknown")
        self.assertIn("unknown", _plain(capture))

    def test_step_header_and_end(self):
        with console.capture() as capture:
            print_step_header(1, "Collect Flatpak apps")
            print_step_end(1)
            print_step_end(2, success=False)
        output = _plain(capture)
        self.assertIn("STEP 1: Collect Flatpak apps", output)
        self.assertIn("Step 1 completed successfully", output)
        self.assertIn("Step 2 failed", output)
        self.assertNotIn("::group::", output)

    def test_warning_and_error(self):
        with console.capture() as capture:
            gha_warning("no token", title="Enrichment skipped")
            gha_error("broken")
        output = _plain(capture)
        self.assertIn("Warning (Enrichment skipped):", output)
        self.assertIn("Error:", output)

    def test_group_is_silent(self):
        with console.capture() as capture:
            with gha_group("Details"):
                pass
        self.assertEqual(_plain(capture), "")

    def test_final_messages(self):
        with console.capture() as capture:
            print_final_success("src/data/apps.json")
            print_final_failure("Could not fetch any curated Flatpak Brewfile")
        output = _plain(capture)
        self.assertIn("src/data/apps.json", output)
        self.assertIn("FAILED", output)


class TestGitHubActionsOutput(unittest.TestCase):
    def setUp(self):
        patcher = patch.object(console_module, "IS_GITHUB_ACTIONS", True)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_step_uses_groups(self):
        with console.capture() as capture:
            print_step_header(4, "Enrich")
            print_step_end(4)
        output = _plain(capture)
        self.assertIn("::group::STEP 4: Enrich", output)
        self.assertIn("::endgroup::", output)

    def test_workflow_annotations(self):
        with console.capture() as capture:
            gha_warning("rate limited", title="GitHub")
            gha_error("boom")
        output = _plain(capture)
        self.assertIn("::warning title=GitHub::rate limited", output)
        self.assertIn("::error::boom", output)

    def test_group_context_manager(self):
        with console.capture() as capture:
            with gha_group("Details"):
                console.print("inside")
        lines = _plain(capture).splitlines()
        self.assertEqual(lines[0], "::group::Details")
        self.assertEqual(lines[-1], "::endgroup::")


class TestSummaries(unittest.TestCase):
    def test_summary_table_filters_empty_rows(self):
        with console.capture() as capture:
            print_summary_table("Counts", [("Shown", 3), ("Hidden", 0)])
        self.assertIn("Shown", _plain(capture))
        self.assertNotIn("Hidden", _plain(capture))

    def test_summary_table_nothing_to_show(self):
        with console.capture() as capture:
            print_summary_table("Counts", [("Hidden", 0)])
        self.assertEqual(_plain(capture), "")

    def test_dataset_summary(self):
        with console.capture() as capture:
            print_dataset_summary({"apps_total": 7, "total_releases": 12, "duration": "1.000s"})
        output = _plain(capture)
        self.assertIn("Dataset Summary", output)
        self.assertIn("12", output)

    def test_enrichment_summary(self):
        with console.capture() as capture:
            print_enrichment_summary({"merged": 4, "skipped": 2, "failed_soft": 1})
        self.assertIn("Release Enrichment", _plain(capture))

    def test_enrichment_skipped_warns(self):
        with patch.object(console_module, "IS_GITHUB_ACTIONS", False):
            with console.capture() as capture:
                print_enrichment_summary({}, skipped_stage=True)
        self.assertIn("GITHUB_TOKEN not set", _plain(capture))


if __name__ == "__main__":
    unittest.main()
