"""Tests for release merging and the enrichment orchestrator."""

import threading
import unittest
from unittest.mock import Mock

import requests

from bluefin_releases._enrichment import (
    EnrichmentOrchestrator,
    ItemOutcome,
    ReleaseBackendRegistry,
    create_default_registry,
    merge_releases,
)
from bluefin_releases.exceptions import APIError
from bluefin_releases.models import HostKind, Item, PackageKind, Release, ReleaseOrigin, SourceRepo
from bluefin_releases.rate_limit import RateLimiter


def _release(version, origin, source=""):
    return Release(version=version, date=None, title=f"Version {version}", origin=origin, source=source)


def _item(native_id, source_repo=None, releases=None):
    return Item(
        id=f"flatpak:{native_id}",
        native_id=native_id,
        package_kind=PackageKind.FLATPAK,
        name=native_id,
        summary="",
        source_repo=source_repo,
        releases=list(releases or []),
        fetched_at="2024-10-01T00:00:00Z",
    )


def _github(owner, repo):
    return SourceRepo(HostKind.GITHUB, f"https://github.com/{owner}/{repo}", owner, repo)


class FakeBackend:
    """Release backend returning canned releases per repository."""

    def __init__(self, host_kind=HostKind.GITHUB, releases=None, failures=()):
        self._host_kind = host_kind
        self._releases = releases or {}
        self._failures = set(failures)
        self.calls = []
        self._lock = threading.Lock()

    @property
    def name(self):
        return self._host_kind.value

    @property
    def host_kind(self):
        return self._host_kind

    def list_releases(self, source_repo, limit=5):
        with self._lock:
            self.calls.append((source_repo.url, limit))
        if source_repo.url in self._failures:
            raise APIError(f"boom for {source_repo.url}")
        return list(self._releases.get(source_repo.url, []))


class TestMergeReleases(unittest.TestCase):
    def test_repo_host_releases_first(self):
        existing = [_release("1.0", ReleaseOrigin.CATALOG_EMBEDDED)]
        new = [_release("v2.0", ReleaseOrigin.REPO_HOST_RELEASE), _release("v1.9", ReleaseOrigin.REPO_HOST_RELEASE)]
        merged = merge_releases(new, existing)
        self.assertEqual([r.version for r in merged], ["v2.0", "v1.9", "1.0"])

    def test_priority_applies_to_mixed_inputs(self):
        existing = [_release("x", ReleaseOrigin.UNKNOWN), _release("1.0", ReleaseOrigin.CATALOG_EMBEDDED)]
        new = [_release("v2", ReleaseOrigin.REPO_HOST_RELEASE)]
        merged = merge_releases(new, existing)
        self.assertEqual([r.origin for r in merged], [
            ReleaseOrigin.REPO_HOST_RELEASE,
            ReleaseOrigin.CATALOG_EMBEDDED,
            ReleaseOrigin.UNKNOWN,
        ])

    def test_same_version_from_both_origins_kept(self):
        merged = merge_releases(
            [_release("1.0", ReleaseOrigin.REPO_HOST_RELEASE)], [_release("1.0", ReleaseOrigin.CATALOG_EMBEDDED)]
        )
        self.assertEqual(len(merged), 2)

    def test_empty_new_keeps_existing(self):
        existing = [_release("1.0", ReleaseOrigin.CATALOG_EMBEDDED)]
        self.assertEqual(merge_releases([], existing), existing)


class TestEnrichmentOrchestrator(unittest.TestCase):
    def setUp(self):
        self.sleeps = []
        self.rate_limiter = RateLimiter(0.5, sleep=self.sleeps.append)

    def _orchestrator(self, backends, token="ghp_test"):
        registry = ReleaseBackendRegistry()
        for backend in backends:
            registry.register(backend)
        return EnrichmentOrchestrator(registry, github_token=token, rate_limiter=self.rate_limiter)

    def test_no_token_returns_same_list(self):
        backend = FakeBackend()
        items = [_item("a.b", _github("a", "b"))]

        with self.assertLogs("bluefin_releases", level="WARNING"):
            result = self._orchestrator([backend], token=None).run(items)

        self.assertIs(result.items, items)
        self.assertTrue(result.skipped_stage)
        self.assertEqual(result.counts()["skipped"], 1)
        self.assertEqual(backend.calls, [])

    def test_partial_failure_is_isolated(self):
        catalog_release = _release("1.0", ReleaseOrigin.CATALOG_EMBEDDED, "flathub")
        backend = FakeBackend(
            releases={"https://github.com/ok/one": [_release("v3", ReleaseOrigin.REPO_HOST_RELEASE, "github")]},
            failures={"https://github.com/bad/two"},
        )
        items = [
            _item("ok.One", _github("ok", "one"), [catalog_release]),
            _item("bad.Two", _github("bad", "two"), [catalog_release]),
        ]

        result = self._orchestrator([backend]).run(items)

        self.assertEqual(result.outcomes, [ItemOutcome.MERGED, ItemOutcome.FAILED_SOFT])
        self.assertEqual([r.version for r in result.items[0].releases], ["v3", "1.0"])
        self.assertIs(result.items[1], items[1])
        self.assertEqual(result.items[1].releases, [catalog_release])

    def test_ineligible_items_skipped(self):
        backend = FakeBackend()
        items = [
            _item("no.Repo"),
            _item("other.Host", SourceRepo(HostKind.OTHER, "https://example.org")),
            _item("github.NoName", SourceRepo(HostKind.GITHUB, "https://github.com/lonely")),
        ]

        result = self._orchestrator([backend]).run(items)

        self.assertEqual(result.outcomes, [ItemOutcome.SKIPPED] * 3)
        self.assertEqual(backend.calls, [])

    def test_gitlab_items_use_gitlab_backend(self):
        github = FakeBackend(HostKind.GITHUB)
        gitlab = FakeBackend(
            HostKind.GITLAB,
            releases={"https://gitlab.gnome.org/World/x": [_release("v1", ReleaseOrigin.REPO_HOST_RELEASE, "gitlab")]},
        )
        items = [_item("x.Y", SourceRepo(HostKind.GITLAB, "https://gitlab.gnome.org/World/x", "World", "x"))]

        result = self._orchestrator([github, gitlab]).run(items)

        self.assertEqual(result.outcomes, [ItemOutcome.MERGED])
        self.assertEqual(github.calls, [])
        self.assertEqual(gitlab.calls, [("https://gitlab.gnome.org/World/x", 5)])

    def test_output_keeps_input_order(self):
        urls = [f"https://github.com/o/r{i}" for i in range(20)]
        backend = FakeBackend(releases={url: [_release(url, ReleaseOrigin.REPO_HOST_RELEASE)] for url in urls})
        items = [_item(f"app.N{i}", _github("o", f"r{i}")) for i in range(20)]

        result = self._orchestrator([backend]).enrich(items)

        self.assertEqual([item.id for item in result], [item.id for item in items])
        self.assertEqual([item.releases[0].version for item in result], urls)

    def test_delay_only_after_success(self):
        backend = FakeBackend(failures={"https://github.com/bad/two"})
        items = [_item("ok.One", _github("ok", "one")), _item("bad.Two", _github("bad", "two"))]

        self._orchestrator([backend]).run(items)

        self.assertEqual(self.sleeps, [0.5])

    def test_release_limit_forwarded(self):
        backend = FakeBackend()
        registry = ReleaseBackendRegistry()
        registry.register(backend)
        orchestrator = EnrichmentOrchestrator(registry, "ghp", release_limit=2, rate_limiter=self.rate_limiter)
        orchestrator.run([_item("a.b", _github("a", "b"))])
        self.assertEqual(backend.calls, [("https://github.com/a/b", 2)])

    def test_default_registry(self):
        registry = create_default_registry(Mock(spec=requests.Session), github_token="ghp")
        self.assertEqual([b["name"] for b in registry.list_backends()], ["github", "gitlab"])


if __name__ == "__main__":
    unittest.main()
