import os
from pathlib import Path

import pytest

from sifpull.kernel.destination import check_destination, derive_name, resolve_destination
from sifpull.kernel.errors import DestinationExistsError, ErrorKind, MalformedInputError


@pytest.mark.parametrize("locator, expected", [
    ("busybox", "busybox_latest.sif"),
    ("busybox:1.36", "busybox_1.36.sif"),
    ("library://busybox", "busybox_latest.sif"),
    ("library://sylabs/examples/lolcow:1.0", "lolcow_1.0.sif"),
    ("library://alpine:3.18,stable", "alpine_3.18.sif"),
    ("docker://alpine:3.18", "alpine_3.18.sif"),
    ("docker://godlovedc/lolcow", "lolcow_latest.sif"),
    ("docker://localhost:5000/team/app:v2", "app_v2.sif"),
    ("docker://alpine@sha256:abcdef", "alpine_sha256.abcdef.sif"),
    ("shub://user/repo", "repo_latest.sif"),
    ("shub://user/repo:devel", "repo_devel.sif"),
    ("oras://ghcr.io/org/image:v1", "image_v1.sif"),
    ("https://example.com/images/alpine.sif", "alpine.sif"),
    ("http://example.com/images/alpine.sif?token=abc", "alpine.sif"),
])
def test_derive_name(locator, expected):
    assert derive_name(locator) == expected


@pytest.mark.parametrize("locator", ["busybox", "busybox:1.36", "sylabs/examples/lolcow", "alpine:3.18,edge"])
def test_unspecified_transport_derives_like_library(locator):
    assert derive_name(locator) == derive_name("library://" + locator)


def test_explicit_name_has_highest_priority():
    dest = resolve_destination("docker://alpine:3.18", name="custom.sif", image_name="positional.sif")
    assert dest == Path("custom.sif")


def test_positional_name_beats_derived_name():
    assert resolve_destination("docker://alpine:3.18", image_name="positional.sif") == Path("positional.sif")


def test_derived_name_used_when_nothing_given():
    assert resolve_destination("busybox") == Path("busybox_latest.sif")


def test_directory_is_joined_last():
    assert resolve_destination("busybox", directory="/images") == Path("/images/busybox_latest.sif")
    assert resolve_destination("busybox", name="bb.sif", directory="out") == Path("out/bb.sif")


def test_check_destination_missing_file_passes(tmp_path):
    check_destination(tmp_path / "absent.sif", force=False)


def test_check_destination_existing_file_fails(tmp_path):
    target = tmp_path / "present.sif"
    target.write_text("old")
    with pytest.raises(DestinationExistsError, match="Image file already exists") as info:
        check_destination(target, force=False)
    assert str(target) in str(info.value)
    assert info.value.kind == ErrorKind.DESTINATION_EXISTS


def test_check_destination_existing_file_with_force(tmp_path):
    target = tmp_path / "present.sif"
    target.write_text("old")
    check_destination(target, force=True)
    assert target.read_text() == "old"


def test_check_destination_dangling_symlink_counts_as_existing(tmp_path):
    link = tmp_path / "link.sif"
    os.symlink(tmp_path / "nowhere", link)
    with pytest.raises(DestinationExistsError):
        check_destination(link, force=False)


@pytest.mark.parametrize("locator", ["https://?x=1", "http://#frag", "https:///"])
def test_web_locator_without_file_name(locator):
    with pytest.raises(MalformedInputError, match="Unable to derive an image name"):
        derive_name(locator)


def test_web_locator_without_file_name_uses_explicit_name():
    assert resolve_destination("https://?x=1", name="img.sif") == Path("img.sif")
