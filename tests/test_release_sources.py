"""Tests for the GitHub and GitLab release backends."""

import unittest
from unittest.mock import Mock

import requests

from bluefin_releases._enrichment.registry import ReleaseBackendRegistry
from bluefin_releases._enrichment.sources import GitHubReleaseSource, GitLabReleaseSource
from bluefin_releases._enrichment.sources.gitlab import project_location
from bluefin_releases.exceptions import APIError, RateLimitError
from bluefin_releases.models import HostKind, ReleaseOrigin, SourceRepo


def _response(status_code=200, json_data=None):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = json_data
    return response


GITHUB_REPO = SourceRepo(HostKind.GITHUB, "https://github.com/flattool/warehouse", "flattool", "warehouse")
GITLAB_REPO = SourceRepo(HostKind.GITLAB, "https://gitlab.gnome.org/World/pika-backup", "World", "pika-backup")


class TestGitHubReleaseSource(unittest.TestCase):
    def setUp(self):
        self.session = Mock(spec=requests.Session)
        self.source = GitHubReleaseSource(self.session, token="ghp_test")

    def test_releases_converted(self):
        self.session.get.return_value = _response(
            200,
            [
                {
                    "tag_name": "v2.0.0",
                    "name": "Warehouse 2.0",
                    "body": "## Changes\n- New UI",
                    "html_url": "https://github.com/flattool/warehouse/releases/tag/v2.0.0",
                    "published_at": "2024-06-01T10:00:00Z",
                },
                {"tag_name": "v1.9.0", "name": "", "published_at": None},
                {"name": "tagless draft"},
            ],
        )

        releases = self.source.list_releases(GITHUB_REPO, limit=5)

        self.assertEqual([r.version for r in releases], ["v2.0.0", "v1.9.0"])
        self.assertEqual(releases[0].title, "Warehouse 2.0")
        self.assertEqual(releases[0].description, "## Changes\n- New UI")
        self.assertEqual(releases[0].date, "2024-06-01T10:00:00Z")
        self.assertEqual(releases[0].origin, ReleaseOrigin.REPO_HOST_RELEASE)
        self.assertEqual(releases[0].source, "github")
        self.assertEqual(releases[1].title, "v1.9.0")
        self.assertIsNotNone(releases[1].date)

    def test_request_shape(self):
        self.session.get.return_value = _response(200, [])
        self.source.list_releases(GITHUB_REPO, limit=3)

        args, kwargs = self.session.get.call_args
        self.assertEqual(args[0], "https://api.github.com/repos/flattool/warehouse/releases")
        self.assertEqual(kwargs["params"], {"per_page": 3})
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer ghp_test")
        self.assertEqual(kwargs["timeout"], 10)

    def test_unknown_repository_is_empty(self):
        self.session.get.return_value = _response(404)
        self.assertEqual(self.source.list_releases(GITHUB_REPO), [])

    def test_rate_limit_raises(self):
        self.session.get.return_value = _response(403)
        with self.assertRaises(RateLimitError):
            self.source.list_releases(GITHUB_REPO)

    def test_server_error_raises(self):
        self.session.get.return_value = _response(502)
        with self.assertRaises(APIError):
            self.source.list_releases(GITHUB_REPO)

    def test_timeout_raises(self):
        self.session.get.side_effect = requests.exceptions.Timeout()
        with self.assertRaises(APIError):
            self.source.list_releases(GITHUB_REPO)

    def test_missing_owner_repo_raises(self):
        with self.assertRaises(APIError):
            self.source.list_releases(SourceRepo(HostKind.GITHUB, "https://github.com/foo"))
        self.session.get.assert_not_called()


class TestGitLabReleaseSource(unittest.TestCase):
    def setUp(self):
        self.session = Mock(spec=requests.Session)
        self.source = GitLabReleaseSource(self.session)

    def test_project_location_from_owner_repo(self):
        self.assertEqual(project_location(GITLAB_REPO), ("gitlab.gnome.org", "World/pika-backup"))

    def test_project_location_from_nested_path(self):
        repo = SourceRepo(HostKind.GITLAB, "https://gitlab.com/group/sub/project.git")
        self.assertEqual(project_location(repo), ("gitlab.com", "group/sub/project"))

    def test_project_location_too_short(self):
        with self.assertRaises(APIError):
            project_location(SourceRepo(HostKind.GITLAB, "https://gitlab.com/lonely"))

    def test_releases_converted(self):
        self.session.get.return_value = _response(
            200,
            [
                {
                    "tag_name": "v0.7.4",
                    "name": "Pika Backup 0.7.4",
                    "description": "**Fixed** crash",
                    "released_at": "2024-05-02T08:00:00.000Z",
                },
                {"tag_name": "v0.7.3", "created_at": "2024-04-01T08:00:00Z"},
            ],
        )

        releases = self.source.list_releases(GITLAB_REPO, limit=2)

        self.assertEqual(len(releases), 2)
        self.assertEqual(releases[0].date, "2024-05-02T08:00:00Z")
        self.assertIn("<strong>Fixed</strong>", releases[0].description)
        self.assertEqual(releases[0].url, "https://gitlab.gnome.org/World/pika-backup/-/releases/v0.7.4")
        self.assertEqual(releases[0].source, "gitlab")
        self.assertEqual(releases[1].date, "2024-04-01T08:00:00Z")
        self.assertEqual(releases[1].title, "v0.7.3")

    def test_request_url_encodes_project_path(self):
        self.session.get.return_value = _response(200, [])
        GitLabReleaseSource(self.session, token="glpat").list_releases(GITLAB_REPO, limit=5)

        args, kwargs = self.session.get.call_args
        self.assertEqual(args[0], "https://gitlab.gnome.org/api/v4/projects/World%2Fpika-backup/releases")
        self.assertEqual(kwargs["headers"], {"PRIVATE-TOKEN": "glpat"})
        self.assertEqual(kwargs["params"], {"per_page": 5})

    def test_unknown_project_is_empty(self):
        self.session.get.return_value = _response(404)
        self.assertEqual(self.source.list_releases(GITLAB_REPO), [])


class TestReleaseBackendRegistry(unittest.TestCase):
    def test_register_and_get(self):
        registry = ReleaseBackendRegistry()
        session = Mock(spec=requests.Session)
        github = GitHubReleaseSource(session)
        registry.register(github)
        registry.register(GitLabReleaseSource(session))

        self.assertIs(registry.get(HostKind.GITHUB), github)
        self.assertTrue(registry.supports(HostKind.GITLAB))
        self.assertFalse(registry.supports(HostKind.OTHER))
        self.assertEqual(
            registry.list_backends(),
            [{"name": "github", "host_kind": "github"}, {"name": "gitlab", "host_kind": "gitlab"}],
        )

    def test_register_replaces_same_host_kind(self):
        registry = ReleaseBackendRegistry()
        session = Mock(spec=requests.Session)
        registry.register(GitHubReleaseSource(session))
        replacement = GitHubReleaseSource(session, token="other")
        registry.register(replacement)
        self.assertIs(registry.get(HostKind.GITHUB), replacement)
        self.assertEqual(len(registry.list_backends()), 1)

    def test_clear(self):
        registry = ReleaseBackendRegistry()
        registry.register(GitHubReleaseSource(Mock(spec=requests.Session)))
        registry.clear()
        self.assertIsNone(registry.get(HostKind.GITHUB))


if __name__ == "__main__":
    unittest.main()
