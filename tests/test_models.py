"""Tests for the unified data model."""

import unittest
from datetime import datetime, timedelta, timezone

from bluefin_releases.models import (
    ORIGIN_PRIORITY,
    FlatpakInfo,
    HomebrewInfo,
    HostKind,
    Item,
    OSInfo,
    PackageKind,
    Release,
    ReleaseOrigin,
    SourceRepo,
    Verification,
    epoch_to_timestamp,
    utc_timestamp,
)


class TestTimestamps(unittest.TestCase):
    def test_utc_timestamp_format(self):
        moment = datetime(2024, 12, 19, 14, 30, 0, tzinfo=timezone.utc)
        self.assertEqual(utc_timestamp(moment), "2024-12-19T14:30:00Z")

    def test_naive_datetime_is_taken_as_utc(self):
        self.assertEqual(utc_timestamp(datetime(2024, 1, 2, 3, 4, 5)), "2024-01-02T03:04:05Z")

    def test_offset_is_converted_to_utc(self):
        moment = datetime(2024, 1, 1, 2, 0, 0, tzinfo=timezone(timedelta(hours=2)))
        self.assertEqual(utc_timestamp(moment), "2024-01-01T00:00:00Z")

    def test_epoch_to_timestamp(self):
        self.assertEqual(epoch_to_timestamp(1700000000), "2023-11-14T22:13:20Z")

    def test_epoch_missing_or_zero(self):
        self.assertEqual(epoch_to_timestamp(None), "")
        self.assertEqual(epoch_to_timestamp(0), "")
        self.assertEqual(epoch_to_timestamp(-5), "")

    def test_epoch_out_of_range(self):
        # Millisecond epochs land far beyond year 9999
        self.assertEqual(epoch_to_timestamp(1700000000000), "")
        self.assertEqual(epoch_to_timestamp(10**20), "")

    def test_early_years_are_zero_padded(self):
        self.assertEqual(utc_timestamp(datetime(99, 5, 1, tzinfo=timezone.utc)), "0099-05-01T00:00:00Z")
        self.assertEqual(utc_timestamp(datetime(1, 1, 1)), "0001-01-01T00:00:00Z")


class TestSourceRepo(unittest.TestCase):
    def test_full_name(self):
        repo = SourceRepo(HostKind.GITHUB, "https://github.com/foo/bar", owner="foo", repo="bar")
        self.assertEqual(repo.full_name, "foo/bar")

    def test_full_name_requires_both_parts(self):
        self.assertIsNone(SourceRepo(HostKind.OTHER, "https://example.org").full_name)
        self.assertIsNone(SourceRepo(HostKind.GITHUB, "https://github.com/foo", owner="foo").full_name)

    def test_to_dict_omits_unknown_parts(self):
        repo = SourceRepo(HostKind.OTHER, "https://example.org")
        self.assertEqual(repo.to_dict(), {"type": "other", "url": "https://example.org"})


class TestRelease(unittest.TestCase):
    def test_origin_always_serialized(self):
        release = Release(version="1.0", date=None, title="Version 1.0")
        self.assertEqual(release.to_dict(), {"version": "1.0", "title": "Version 1.0", "origin": "unknown"})

    def test_origin_priority_order(self):
        priority = ORIGIN_PRIORITY
        self.assertLess(priority[ReleaseOrigin.REPO_HOST_RELEASE], priority[ReleaseOrigin.CATALOG_EMBEDDED])
        self.assertLess(priority[ReleaseOrigin.CATALOG_EMBEDDED], priority[ReleaseOrigin.UNKNOWN])


class TestItemSerialization(unittest.TestCase):
    def _flatpak_item(self):
        return Item(
            id="flatpak:org.gnome.Calculator",
            native_id="org.gnome.Calculator",
            package_kind=PackageKind.FLATPAK,
            name="Calculator",
            summary="Perform arithmetic",
            version="47.0",
            release_date="2024-09-14T00:00:00Z",
            source_repo=SourceRepo(
                HostKind.GITLAB, "https://gitlab.gnome.org/GNOME/gnome-calculator", "GNOME", "gnome-calculator"
            ),
            releases=[
                Release(
                    version="47.0",
                    date="2024-09-14T00:00:00Z",
                    title="Version 47.0",
                    origin=ReleaseOrigin.CATALOG_EMBEDDED,
                    source="flathub",
                )
            ],
            fetched_at="2024-10-01T00:00:00Z",
            flatpak=FlatpakInfo(
                catalog_url="https://flathub.org/apps/org.gnome.Calculator",
                categories=["Utility"],
                is_verified=True,
                verification=Verification(method="website", website="gnome.org"),
                app_set="core",
            ),
        )

    def test_camel_case_keys(self):
        data = self._flatpak_item().to_dict()
        self.assertEqual(data["id"], "flatpak:org.gnome.Calculator")
        self.assertEqual(data["nativeId"], "org.gnome.Calculator")
        self.assertEqual(data["packageType"], "flatpak")
        self.assertEqual(data["currentReleaseVersion"], "47.0")
        self.assertEqual(data["sourceRepo"]["type"], "gitlab")
        self.assertEqual(data["flatpak"]["flathubUrl"], "https://flathub.org/apps/org.gnome.Calculator")
        self.assertEqual(data["flatpak"]["verificationInfo"]["method"], "website")
        self.assertEqual(data["fetchedAt"], "2024-10-01T00:00:00Z")

    def test_empty_fields_omitted(self):
        item = Item(id="homebrew:bat", native_id="bat", package_kind=PackageKind.HOMEBREW, fetched_at="x")
        data = item.to_dict()
        self.assertNotIn("sourceRepo", data)
        self.assertNotIn("releases", data)
        self.assertNotIn("description", data)
        self.assertIn("name", data)
        self.assertIn("summary", data)

    def test_flatpak_item_round_trip(self):
        item = self._flatpak_item()
        self.assertEqual(Item.from_dict(item.to_dict()), item)

    def test_homebrew_and_os_round_trip(self):
        homebrew = Item(
            id="homebrew:cask/firefox",
            native_id="cask/firefox",
            package_kind=PackageKind.HOMEBREW,
            name="Mozilla Firefox",
            summary="Web browser",
            fetched_at="2024-10-01T00:00:00Z",
            homebrew=HomebrewInfo(package_type="cask", tap="homebrew/cask", brewfile="ide.Brewfile"),
        )
        os_item = Item(
            id="os-release:stable-20260203",
            native_id="stable-20260203",
            package_kind=PackageKind.OS_RELEASE,
            name="Bluefin OS stable",
            summary="Stable release",
            fetched_at="2024-10-01T00:00:00Z",
            os_info=OSInfo(stream="stable", build_number="20260203", major_packages={"Podman": "5.7.1"}),
        )
        self.assertEqual(Item.from_dict(homebrew.to_dict()), homebrew)
        self.assertEqual(Item.from_dict(os_item.to_dict()), os_item)


if __name__ == "__main__":
    unittest.main()
