"""Tests for contextual bindings scoped to the class under construction."""

import pytest

from rewire.container import Container
from rewire.contextual import ContextualBindingBuilder
from rewire.exceptions import RewireInvalidRegistrationError


class Filesystem:
    name = "default"


class LocalFilesystem(Filesystem):
    name = "local"


class S3Filesystem(Filesystem):
    name = "s3"


class PhotoController:
    def __init__(self, filesystem: Filesystem) -> None:
        self.filesystem = filesystem


class VideoController:
    def __init__(self, filesystem: Filesystem) -> None:
        self.filesystem = filesystem


class Thumbnailer:
    def __init__(self, filesystem: Filesystem) -> None:
        self.filesystem = filesystem


class GalleryController:
    def __init__(self, thumbnailer: Thumbnailer) -> None:
        self.thumbnailer = thumbnailer


class Rule:
    pass


class RequiredRule(Rule):
    pass


class EmailRule(Rule):
    pass


class LengthRule(Rule):
    pass


class Validator:
    def __init__(self, *rules: Rule) -> None:
        self.rules = rules


class TestScoping:
    def test_override_applies_to_consumer(self, container: Container) -> None:
        container.when(PhotoController).needs(Filesystem).give(LocalFilesystem)

        controller = container.make(PhotoController)

        assert isinstance(controller.filesystem, LocalFilesystem)

    def test_override_does_not_apply_to_other_consumers(self, container: Container) -> None:
        container.when(PhotoController).needs(Filesystem).give(LocalFilesystem)

        assert type(container.make(VideoController).filesystem) is Filesystem
        assert type(container.make(Filesystem)) is Filesystem

    def test_override_limited_to_innermost_consumer(self, container: Container) -> None:
        container.when(GalleryController).needs(Filesystem).give(S3Filesystem)

        gallery = container.make(GalleryController)

        assert type(gallery.thumbnailer.filesystem) is Filesystem

    def test_multiple_consumers(self, container: Container) -> None:
        container.when([PhotoController, VideoController]).needs(Filesystem).give(S3Filesystem)

        assert isinstance(container.make(PhotoController).filesystem, S3Filesystem)
        assert isinstance(container.make(VideoController).filesystem, S3Filesystem)

    def test_factory_implementation(self, container: Container) -> None:
        local = LocalFilesystem()
        container.when(PhotoController).needs(Filesystem).give(lambda: local)

        assert container.make(PhotoController).filesystem is local

    def test_contextual_build_skips_shared_cache(self, container: Container) -> None:
        container.singleton(Filesystem)
        shared = container.make(Filesystem)
        container.when(PhotoController).needs(Filesystem).give(Filesystem)

        controller = container.make(PhotoController)

        assert controller.filesystem is not shared
        assert container.make(VideoController).filesystem is shared

    def test_needs_alias_is_canonicalized(self, container: Container) -> None:
        container.alias(Filesystem, "files")
        container.when(PhotoController).needs("files").give(LocalFilesystem)

        assert isinstance(container.make(PhotoController).filesystem, LocalFilesystem)

    def test_alias_registered_later_is_probed(self, container: Container) -> None:
        container.when(PhotoController).needs("files").give(LocalFilesystem)
        container.alias(Filesystem, "files")

        assert isinstance(container.make(PhotoController).filesystem, LocalFilesystem)

    def test_consumer_alias_is_canonicalized(self, container: Container) -> None:
        container.alias(PhotoController, "photos")
        container.when("photos").needs(Filesystem).give(LocalFilesystem)

        assert isinstance(container.make("photos").filesystem, LocalFilesystem)


class TestVariadicExpansion:
    def test_list_expands_in_order(self, container: Container) -> None:
        container.when(Validator).needs(Rule).give([RequiredRule, EmailRule, LengthRule])

        rules = container.make(Validator).rules

        assert [type(rule) for rule in rules] == [RequiredRule, EmailRule, LengthRule]

    def test_without_override_builds_single_instance(self, container: Container) -> None:
        rules = container.make(Validator).rules

        assert len(rules) == 1
        assert type(rules[0]) is Rule


class TestBuilderHandle:
    def test_when_returns_builder_with_concretes(self, container: Container) -> None:
        handle = container.when(PhotoController)

        assert isinstance(handle, ContextualBindingBuilder)
        assert handle.concretes == (PhotoController,)

    def test_when_none_has_no_consumers(self, container: Container) -> None:
        handle = container.when(None)
        handle.needs(Filesystem).give(LocalFilesystem)

        assert handle.concretes == ()
        assert type(container.make(PhotoController).filesystem) is Filesystem

    def test_needs_returns_same_builder(self, container: Container) -> None:
        handle = container.when(PhotoController)

        assert handle.needs(Filesystem) is handle

    def test_give_without_needs_raises(self, container: Container) -> None:
        with pytest.raises(RewireInvalidRegistrationError):
            container.when(PhotoController).give(LocalFilesystem)


class TestGiveConfig:
    def test_nested_key(self, container_with_config: Container) -> None:
        class Mailer:
            def __init__(self, sender: str) -> None:
                self.sender = sender

        container_with_config.when(Mailer).needs("$sender").give_config("mail.from")

        assert container_with_config.make(Mailer).sender == "ops@example.com"

    def test_missing_key_uses_default(self, container_with_config: Container) -> None:
        class Mailer:
            def __init__(self, timeout: int) -> None:
                self.timeout = timeout

        container_with_config.when(Mailer).needs("$timeout").give_config("mail.timeout", 30)

        assert container_with_config.make(Mailer).timeout == 30
