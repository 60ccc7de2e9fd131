"""Naming rules and index mapping shared by the generator commands.

All derived names (crate names, make targets, file locations) come from here.
"""

from __future__ import annotations

import enum
import logging
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path, PurePosixPath
from typing import Any, Mapping

logger = logging.getLogger(__name__)

CI_WHITELIST: tuple[str, ...] = (
    "urlshortener:v1",
    "admin:directory_v1",
    "drive:v3",
    "oauth2:v2",
)

_CI_VENDORS: tuple[tuple[str, str], ...] = (
    ("TRAVIS", "Travis"),
    ("CIRCLECI", "CircleCI"),
    ("GITHUB_ACTIONS", "GitHub Actions"),
    ("GITLAB_CI", "GitLab"),
    ("APPVEYOR", "AppVeyor"),
    ("JENKINS_URL", "Jenkins"),
    ("BUILDKITE", "Buildkite"),
    ("TF_BUILD", "Azure Pipelines"),
    ("DRONE", "Drone"),
    ("TEAMCITY_VERSION", "TeamCity"),
    ("BITBUCKET_COMMIT", "Bitbucket Pipelines"),
)
_GENERIC_CI_VARIABLES = ("CI", "CONTINUOUS_INTEGRATION", "BUILD_NUMBER", "RUN_ID")


class NamingError(ValueError):
    """Raised when a name or version cannot be mapped."""


@dataclass(frozen=True)
class CiInfo:
    """Whether the process runs on a continuous integration service, and which."""

    ci: bool = False
    vendor: str | None = None


def ci_info(env: Mapping[str, str] | None = None) -> CiInfo:
    """Detect a CI environment from environment variables."""
    env = os.environ if env is None else env
    for variable, vendor in _CI_VENDORS:
        if variable in env:
            return CiInfo(ci=True, vendor=vendor)
    for variable in _GENERIC_CI_VARIABLES:
        value = env.get(variable)
        if value is not None and value.lower() != "false":
            return CiInfo(ci=True, vendor=None)
    return CiInfo()


@dataclass
class Standard:
    """Constants that are not specific to any API."""

    cargo_toml_path: str = "Cargo.toml"
    lib_path: str = "src/lib.rs"
    main_path: str = "src/main.rs"
    metadata_path: str = "meta.json"
    lib_dir: str = "lib"
    cli_dir: str = "cli"
    spec_dir: str = "etc/api"
    lib_crate_version: str = "0.1.0"
    cli_crate_version: str = "0.1.0"

    def to_dict(self) -> dict[str, str]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Standard:
        return cls(**{f.name: data[f.name] for f in fields(cls)})


class SkipIfErrorIsPresent(enum.Enum):
    """Which previously recorded error logs make an API invalid."""

    GENERATOR_AND_CARGO = "generator-and-cargo"
    GENERATOR = "generator"


_PATH_FIELDS = (
    "metadata_file",
    "lib_cargo_file",
    "gen_error_file",
    "cargo_error_file",
    "gen_dir",
    "spec_file",
)


@dataclass
class Api:
    """Everything needed to generate and locate the code for one API."""

    name: str
    id: str
    metadata_file: PurePosixPath
    lib_cargo_file: PurePosixPath
    gen_error_file: PurePosixPath
    cargo_error_file: PurePosixPath
    gen_dir: PurePosixPath
    spec_file: PurePosixPath
    lib_crate_name: str
    cli_crate_name: str
    make_target: str
    bin_name: str
    rest_url: str
    lib_crate_version: str | None = None
    cli_crate_version: str | None = None

    @classmethod
    def from_item(cls, item: Mapping[str, Any]) -> Api:
        """Build from an item of the discovery directory index."""
        raw_name = item["name"]
        version = item["version"]
        name = sanitized_name(raw_name)
        gen_dir = PurePosixPath(name) / version
        standard = Standard()
        crate_name = lib_crate_name(raw_name, version)
        target = make_target(raw_name, version)
        return cls(
            name=name,
            id=item["id"],
            metadata_file=gen_dir / standard.metadata_path,
            lib_cargo_file=gen_dir / standard.lib_dir / standard.cargo_toml_path,
            gen_error_file=gen_dir / "generator-errors.log",
            cargo_error_file=gen_dir / "cargo-errors.log",
            gen_dir=gen_dir,
            spec_file=gen_dir / "spec.json",
            lib_crate_name=crate_name,
            cli_crate_name=cli_crate_name(crate_name),
            make_target=target,
            bin_name=target,
            rest_url=item["discoveryRestUrl"],
        )

    @classmethod
    def from_rest_desc(cls, desc: Mapping[str, Any]) -> Api:
        """Build from a full discovery REST description, stamping crate versions."""
        api = cls.from_item(
            {
                "id": desc["id"],
                "name": desc["name"],
                "version": desc["version"],
                "discoveryRestUrl": "<unset>",
            }
        )
        standard = Standard()
        revision = desc["revision"]
        api.lib_crate_version = _crate_version(standard.lib_crate_version, revision)
        api.cli_crate_version = _crate_version(standard.cli_crate_version, revision)
        return api

    def validated(
        self,
        info: CiInfo,
        spec_directory: Path,
        output_directory: Path,
        skip_mode: SkipIfErrorIsPresent,
    ) -> Api:
        """Return self if valid, raise NamingError otherwise."""
        if api_is_valid(self, info, spec_directory, output_directory, skip_mode):
            return self
        raise NamingError(f"Api '{self.id}' is invalid")

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name in ("lib_crate_version", "cli_crate_version") and value is None:
                continue
            data[f.name] = str(value) if f.name in _PATH_FIELDS else value
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Api:
        kwargs: dict[str, Any] = {}
        for f in fields(cls):
            if f.name in ("lib_crate_version", "cli_crate_version"):
                kwargs[f.name] = data.get(f.name)
            elif f.name in _PATH_FIELDS:
                kwargs[f.name] = PurePosixPath(data[f.name])
            else:
                kwargs[f.name] = data[f.name]
        return cls(**kwargs)


def api_is_valid(
    api: Api,
    info: CiInfo,
    spec_directory: Path,
    output_directory: Path,
    skip_mode: SkipIfErrorIsPresent,
) -> bool:
    """Check whether an API may be processed: allowed on CI, has a spec, no recorded errors."""
    if info.ci and api.id not in CI_WHITELIST:
        return False
    spec_path = Path(spec_directory) / api.spec_file
    if not spec_path.is_file():
        logger.error(
            "Dropping API '%s' as its spec file at '%s' does not exist",
            api.lib_crate_name,
            spec_path,
        )
        return False
    if skip_mode is SkipIfErrorIsPresent.GENERATOR_AND_CARGO:
        skip_list = [api.gen_error_file, api.cargo_error_file]
    else:
        skip_list = [api.gen_error_file]
    for error_log in skip_list:
        error_log_file = Path(output_directory) / error_log
        if error_log_file.is_file():
            logger.error(
                "Dropping API '%s' as it previously failed with errors, see '%s' for details.",
                api.lib_crate_name,
                error_log_file,
            )
            return False
    return True


@dataclass
class MappedIndex:
    """The discovery index mapped to our naming scheme."""

    standard: Standard = field(default_factory=Standard)
    api: list[Api] = field(default_factory=list)

    @classmethod
    def from_api_index(cls, index: Mapping[str, Any]) -> MappedIndex:
        """Map every item of a discovery directory index."""
        return cls(
            standard=Standard(),
            api=[Api.from_item(item) for item in index.get("items") or []],
        )

    def validated(
        self,
        spec_directory: Path,
        output_directory: Path,
        info: CiInfo | None = None,
    ) -> MappedIndex:
        """Return an index holding only the valid APIs."""
        info = ci_info() if info is None else info
        if info.ci:
            logger.info(
                "Running on CI '%s' - limiting APIs to %s",
                info.vendor,
                list(CI_WHITELIST),
            )
        kept = [
            api
            for api in self.api
            if api_is_valid(
                api,
                info,
                spec_directory,
                output_directory,
                SkipIfErrorIsPresent.GENERATOR_AND_CARGO,
            )
        ]
        return MappedIndex(standard=self.standard, api=kept)

    def to_dict(self) -> dict[str, Any]:
        return {
            "standard": self.standard.to_dict(),
            "api": [api.to_dict() for api in self.api],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> MappedIndex:
        return cls(
            standard=Standard.from_dict(data["standard"]),
            api=[Api.from_dict(item) for item in data["api"]],
        )


def lib_crate_name(name: str, version: str) -> str:
    """Name of the crate implementing the library."""
    return f"google-{make_target(name, version)}"


def cli_crate_name(crate_name: str) -> str:
    """Name of the crate implementing the command-line interface."""
    return f"{crate_name}-cli"


def sanitized_name(name: str) -> str:
    """Strip trailing ASCII digits, unless the name has nothing else."""
    stripped = name.rstrip("0123456789")
    return stripped if stripped else name


def make_target(name: str, version: str) -> str:
    """Name suitable as a make target and binary name."""
    return f"{sanitized_name(name)}{parse_version(version)}"


def _crate_version(major_minor_patch: str, revision_date: str) -> str:
    return f"{major_minor_patch}-{revision_date}"


def _transform_version(version: str) -> str:
    if not version.startswith("v"):
        raise NamingError("A version must start with 'v'")
    out: list[str] = []
    separator: str | None = "_"
    for char in version[1:]:
        if char == ".":
            out.append("d")
        elif "0" <= char <= "9":
            out.append(char)
        elif "a" <= char <= "z":
            if separator is not None:
                out.append(separator)
                separator = None
            out.append(char)
        else:
            raise NamingError(f"unexpected character '{ord(char)}'")
    return "".join(out)


def _parse_version(version: str) -> str:
    if len(version.encode("utf-8")) < 2:
        raise NamingError("version string too small")
    if not version.isascii():
        raise NamingError("can only handle ascii versions")
    if version in ("alpha", "beta"):
        return version
    if "_" in version:
        left, right = version.split("_", 1)
        return f"{_transform_version(right)}_{left}"
    return _transform_version(version)


def parse_version(version: str) -> str:
    """Normalize an API version string, raising NamingError if it is malformed."""
    try:
        return _parse_version(version)
    except NamingError as exc:
        raise NamingError(f"invalid version '{version}': {exc}") from exc