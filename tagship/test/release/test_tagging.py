from __future__ import annotations

import pytest

from tagship.core.result import Err, Ok
from tagship.output.console import MockConsole
from tagship.release.errors import (
    InvalidTagName,
    InvalidVersion,
    TagAlreadyExists,
    TagCheckFailed,
    TagCreateFailed,
    TagNotFound,
    TagPushFailed,
)
from tagship.release.semver import Version
from tagship.release.tagging import TagManager, TagNamePolicy
from tagship.test.release.fakes import HEAD_SHA, FakeRepo


def _manager(repo: FakeRepo, policy: TagNamePolicy | None = None) -> TagManager:
    return TagManager(repo=repo, policy=policy or TagNamePolicy(), console=MockConsole())


class TestTagNamePolicy:
    def test_tag_for_uses_prefix(self) -> None:
        tag = TagNamePolicy(prefix="v").tag_for(Version(1, 2, 3))
        assert tag.name == "v1.2.3"
        assert str(tag) == "v1.2.3"

    @pytest.mark.parametrize("raw", ["1.2.3", "v1.2.3", " v1.2.3 "])
    def test_parse_accepts_with_or_without_prefix(self, raw: str) -> None:
        result = TagNamePolicy(prefix="v").parse(raw)
        assert isinstance(result, Ok)
        assert result.value.name == "v1.2.3"

    def test_require_prefix_rejects_bare_version(self) -> None:
        result = TagNamePolicy(prefix="v", require_prefix=True).parse("1.2.3")
        assert isinstance(result, Err)
        assert isinstance(result.error, InvalidTagName)

    def test_parse_rejects_non_version(self) -> None:
        result = TagNamePolicy().parse("latest")
        assert isinstance(result, Err)
        assert isinstance(result.error, InvalidVersion)

    @pytest.mark.parametrize("name", ["", "1.2.3 beta", "1..2", "1.2.3.lock", "-1.2.3", "a:b"])
    def test_validate_rejects_bad_ref_names(self, name: str) -> None:
        assert isinstance(TagNamePolicy().validate(name), Err)


class TestCreate:
    def test_creates_and_pushes(self) -> None:
        repo = FakeRepo()
        result = _manager(repo).create_tag(Version(1, 2, 4), message="notes")

        assert isinstance(result, Ok)
        assert result.value.name == "1.2.4"
        assert repo.tags["1.2.4"] == HEAD_SHA
        assert repo.remote_tags["1.2.4"] == HEAD_SHA
        assert repo.tag_messages["1.2.4"] == "notes"
        assert repo.calls == ["tag 1.2.4", "push 1.2.4"]

    def test_default_message(self) -> None:
        repo = FakeRepo()
        _manager(repo, TagNamePolicy(prefix="v")).create_tag(Version(2, 0, 0))
        assert repo.tag_messages["v2.0.0"] == "Release v2.0.0"

    def test_second_create_is_tag_already_exists(self) -> None:
        repo = FakeRepo()
        manager = _manager(repo)
        assert manager.create_tag(Version(1, 2, 4)).is_ok()

        again = manager.create_tag(Version(1, 2, 4))

        assert isinstance(again, Err)
        assert again.error == TagAlreadyExists(name="1.2.4", where="remote", stale_local=True)
        assert repo.calls.count("tag 1.2.4") == 1

    def test_remote_only_tag_is_detected_before_creation(self) -> None:
        repo = FakeRepo(remote_tags={"1.2.4": "f" * 40})

        result = _manager(repo).create_tag(Version(1, 2, 4))

        assert isinstance(result, Err)
        assert result.error == TagAlreadyExists(name="1.2.4", where="remote")
        assert repo.calls == []

    def test_unpushed_local_tag_points_at_push_tag(self) -> None:
        repo = FakeRepo(tags={"1.2.4": HEAD_SHA})

        result = _manager(repo).create_tag(Version(1, 2, 4))

        assert isinstance(result, Err)
        assert result.error == TagAlreadyExists(name="1.2.4", where="local")
        assert "tagship push-tag 1.2.4" in (result.error.hint or "")
        assert repo.calls == []

    def test_leftover_tag_from_lost_race_is_reported_as_remote(self) -> None:
        # This checkout tagged its own commit; another run published a different one.
        repo = FakeRepo(tags={"1.2.4": HEAD_SHA}, remote_tags={"1.2.4": "f" * 40})

        result = _manager(repo).create_tag(Version(1, 2, 4))

        assert isinstance(result, Err)
        assert result.error == TagAlreadyExists(name="1.2.4", where="remote", stale_local=True)
        assert "push-tag" not in (result.error.hint or "")
        assert "git fetch --tags --force" in (result.error.hint or "")

    def test_remote_check_failure_creates_nothing(self) -> None:
        repo = FakeRepo(remote_error="fatal: could not read from remote repository")

        result = _manager(repo).create_tag(Version(1, 2, 4))

        assert isinstance(result, Err)
        assert isinstance(result.error, TagCheckFailed)
        assert repo.tags == {}

    def test_push_rejected_by_racing_run(self) -> None:
        repo = FakeRepo()

        def race(r: FakeRepo) -> None:
            r.remote_tags["1.2.4"] = "f" * 40

        repo.on_tag_created = race

        result = _manager(repo).create_tag(Version(1, 2, 4))

        assert isinstance(result, Err)
        assert result.error == TagAlreadyExists(name="1.2.4", where="remote", stale_local=True)
        assert "git fetch --tags --force" in (result.error.hint or "")

    def test_push_failure_is_tag_push_failed(self) -> None:
        repo = FakeRepo(push_error="fatal: unable to access 'https://example.invalid/': timeout")

        result = _manager(repo).create_tag(Version(1, 2, 4))

        assert isinstance(result, Err)
        assert isinstance(result.error, TagPushFailed)
        assert "push-tag 1.2.4" in (result.error.hint or "")
        assert "1.2.4" in repo.tags

    def test_local_create_failure(self) -> None:
        repo = FakeRepo(create_error="fatal: bad object HEAD")

        result = _manager(repo).create_tag(Version(1, 2, 4))

        assert isinstance(result, Err)
        assert isinstance(result.error, TagCreateFailed)

    def test_invalid_prefix_is_rejected_before_git(self) -> None:
        repo = FakeRepo()
        manager = _manager(repo, TagNamePolicy(prefix="release "))

        result = manager.create_tag(Version(1, 0, 0))

        assert isinstance(result, Err)
        assert isinstance(result.error, InvalidTagName)
        assert repo.calls == []


class TestPushTag:
    def test_push_is_idempotent(self) -> None:
        repo = FakeRepo(tags={"1.2.4": HEAD_SHA})
        manager = _manager(repo)

        assert manager.push_tag("1.2.4").is_ok()
        assert manager.push_tag("1.2.4").is_ok()
        assert repo.remote_tags == {"1.2.4": HEAD_SHA}

    def test_push_missing_tag(self) -> None:
        result = _manager(FakeRepo()).push_tag("1.2.4")

        assert isinstance(result, Err)
        assert result.error == TagNotFound(name="1.2.4")

    def test_push_conflicting_remote_tag(self) -> None:
        repo = FakeRepo(tags={"1.2.4": HEAD_SHA}, remote_tags={"1.2.4": "f" * 40})

        result = _manager(repo).push_tag("1.2.4")

        assert isinstance(result, Err)
        assert isinstance(result.error, TagAlreadyExists)
