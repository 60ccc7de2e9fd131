import logging
from pathlib import Path, PurePosixPath

import pytest

from apigenkit.naming import (
    CI_WHITELIST,
    Api,
    CiInfo,
    MappedIndex,
    NamingError,
    SkipIfErrorIsPresent,
    Standard,
    api_is_valid,
    ci_info,
    cli_crate_name,
    lib_crate_name,
    make_target,
    parse_version,
    sanitized_name,
)


def _item(name="youtube", version="v3", api_id="youtube:v3"):
    return {
        "id": api_id,
        "name": name,
        "version": version,
        "discoveryRestUrl": "https://example.com/discovery/youtube",
    }


def test_sanitized_name_does_not_alter_anything_else():
    assert sanitized_name("2foo") == "2foo"
    assert sanitized_name("fo2oo") == "fo2oo"
    assert sanitized_name("foo") == "foo"


def test_sanitized_name_strips_numbers_off_the_tail():
    assert sanitized_name("foo2") == "foo"
    assert sanitized_name("foo20") == "foo"


def test_sanitized_name_keeps_all_digit_names():
    assert sanitized_name("123") == "123"


def test_lib_crate_name_produces_valid_crate_name():
    assert lib_crate_name("youtube", "v2.0") == "google-youtube2d0"


def test_make_target_produces_valid_make_target():
    assert make_target("youtube", "v1.3") == "youtube1d3"


def test_cli_crate_name():
    assert cli_crate_name("google-youtube2d0") == "google-youtube2d0-cli"


@pytest.mark.parametrize(
    "version, expected",
    [
        ("alpha", "alpha"),
        ("beta", "beta"),
        ("v1", "1"),
        ("v2.0", "2d0"),
        ("v1beta1", "1_beta1"),
        ("directory_v1", "1_directory"),
    ],
)
def test_parse_version(version, expected):
    assert parse_version(version) == expected


@pytest.mark.parametrize(
    "version, fragment",
    [
        ("v", "version string too small"),
        ("", "version string too small"),
        ("vé", "can only handle ascii versions"),
        ("1.0", "A version must start with 'v'"),
        ("v1-0", "unexpected character"),
        ("foo_", "A version must start with 'v'"),
    ],
)
def test_parse_version_errors(version, fragment):
    with pytest.raises(NamingError) as info:
        parse_version(version)
    assert fragment in str(info.value)
    assert str(info.value).startswith(f"invalid version '{version}'")


def test_ci_info_detection():
    assert ci_info({}) == CiInfo(ci=False, vendor=None)
    assert ci_info({"CI": "true"}).ci is True
    assert ci_info({"CI": "false"}).ci is False
    assert ci_info({"TRAVIS": "true"}).ci is True


def test_api_from_item():
    api = Api.from_item(_item())
    assert api.name == "youtube"
    assert api.gen_dir == PurePosixPath("youtube/v3")
    assert api.spec_file == PurePosixPath("youtube/v3/spec.json")
    assert api.metadata_file == PurePosixPath("youtube/v3/meta.json")
    assert api.lib_cargo_file == PurePosixPath("youtube/v3/lib/Cargo.toml")
    assert api.gen_error_file == PurePosixPath("youtube/v3/generator-errors.log")
    assert api.cargo_error_file == PurePosixPath("youtube/v3/cargo-errors.log")
    assert api.lib_crate_name == "google-youtube3"
    assert api.cli_crate_name == "google-youtube3-cli"
    assert api.make_target == "youtube3"
    assert api.bin_name == api.make_target
    assert api.lib_crate_version is None


def test_api_from_item_rejects_bad_version():
    with pytest.raises(NamingError):
        Api.from_item(_item(version="x"))


def test_api_from_rest_desc():
    desc = {
        "id": "drive:v3",
        "name": "drive",
        "version": "v3",
        "title": "Drive",
        "description": "files",
        "revision": "20200101",
    }
    api = Api.from_rest_desc(desc)
    assert api.rest_url == "<unset>"
    assert api.lib_crate_version == "0.1.0-20200101"
    assert api.cli_crate_version == "0.1.0-20200101"


def test_api_dict_round_trip_and_optional_versions():
    api = Api.from_item(_item())
    data = api.to_dict()
    assert "lib_crate_version" not in data
    assert data["spec_file"] == "youtube/v3/spec.json"
    assert Api.from_dict(data) == api
    api.lib_crate_version = "0.1.0-1"
    assert Api.from_dict(api.to_dict()) == api


def test_standard_round_trip():
    standard = Standard()
    assert Standard.from_dict(standard.to_dict()) == standard
    assert standard.spec_dir == "etc/api"


def _write_spec(spec_dir: Path, api: Api) -> None:
    path = spec_dir / api.spec_file
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("{}")


def test_api_is_valid_requires_spec(tmp_path, caplog):
    api = Api.from_item(_item())
    with caplog.at_level(logging.ERROR):
        assert not api_is_valid(
            api, CiInfo(), tmp_path, tmp_path, SkipIfErrorIsPresent.GENERATOR
        )
    assert "does not exist" in caplog.text
    _write_spec(tmp_path, api)
    assert api_is_valid(api, CiInfo(), tmp_path, tmp_path, SkipIfErrorIsPresent.GENERATOR)


def test_api_is_valid_on_ci_uses_whitelist(tmp_path):
    api = Api.from_item(_item())
    _write_spec(tmp_path, api)
    ci = CiInfo(ci=True, vendor="Travis")
    assert not api_is_valid(api, ci, tmp_path, tmp_path, SkipIfErrorIsPresent.GENERATOR)
    allowed = Api.from_item(_item("drive", "v3", "drive:v3"))
    assert allowed.id in CI_WHITELIST
    _write_spec(tmp_path, allowed)
    assert api_is_valid(allowed, ci, tmp_path, tmp_path, SkipIfErrorIsPresent.GENERATOR)


def test_api_is_valid_error_logs(tmp_path):
    spec_dir = tmp_path / "spec"
    out_dir = tmp_path / "out"
    api = Api.from_item(_item())
    _write_spec(spec_dir, api)
    cargo_log = out_dir / api.cargo_error_file
    cargo_log.parent.mkdir(parents=True)
    cargo_log.write_text("boom")
    assert api_is_valid(api, CiInfo(), spec_dir, out_dir, SkipIfErrorIsPresent.GENERATOR)
    assert not api_is_valid(
        api, CiInfo(), spec_dir, out_dir, SkipIfErrorIsPresent.GENERATOR_AND_CARGO
    )
    (out_dir / api.gen_error_file).write_text("boom")
    assert not api_is_valid(api, CiInfo(), spec_dir, out_dir, SkipIfErrorIsPresent.GENERATOR)


def test_api_validated(tmp_path):
    api = Api.from_item(_item())
    with pytest.raises(NamingError, match="Api 'youtube:v3' is invalid"):
        api.validated(CiInfo(), tmp_path, tmp_path, SkipIfErrorIsPresent.GENERATOR)
    _write_spec(tmp_path, api)
    assert api.validated(
        CiInfo(), tmp_path, tmp_path, SkipIfErrorIsPresent.GENERATOR
    ) is api


def test_mapped_index_from_api_index_and_validated(tmp_path):
    index = MappedIndex.from_api_index(
        {"items": [_item(), _item("drive", "v3", "drive:v3")]}
    )
    assert [a.id for a in index.api] == ["youtube:v3", "drive:v3"]
    _write_spec(tmp_path, index.api[1])
    valid = index.validated(tmp_path, tmp_path, CiInfo())
    assert [a.id for a in valid.api] == ["drive:v3"]


def test_mapped_index_round_trip():
    index = MappedIndex.from_api_index({"items": [_item()]})
    data = index.to_dict()
    assert set(data) == {"standard", "api"}
    assert MappedIndex.from_dict(data) == index