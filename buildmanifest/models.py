"""Typed, immutable records produced by the manifest loader.

Field aliases follow the manifest's own kebab-case names so that pydantic
error locations can be reported with the TOML path the user wrote. The two
nested records are aliased to their full table paths for the same reason.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from typing import Annotated, Any, Dict, FrozenSet, Optional, Tuple

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    StrictBool,
    field_validator,
    model_validator,
)

from .globs import check_portable_glob, check_relative_dir

_NAME_RE = re.compile(r"^([A-Z0-9]|[A-Z0-9][A-Z0-9._-]*[A-Z0-9])$", re.IGNORECASE)
_NAME_PREFIX_RE = re.compile(r"^\s*[A-Z0-9]([A-Z0-9._-]*[A-Z0-9])?", re.IGNORECASE)
_VERSION_RE = re.compile(
    r"^v?(\d+!)?\d+(\.\d+)*"
    r"([-_.]?(a|b|c|rc|alpha|beta|pre|preview)[-_.]?\d*)?"
    r"([-_.]?(post|rev|r)[-_.]?\d*)?"
    r"([-_.]?dev[-_.]?\d*)?"
    r"(\+[a-z0-9]+([-_.][a-z0-9]+)*)?$",
    re.IGNORECASE,
)
_SPECIFIER_RE = re.compile(r"^\s*(===|==|!=|<=|>=|~=|<|>)\s*[A-Za-z0-9.*+!_-]+\s*$")
_IDENT = r"[A-Za-z_][A-Za-z0-9_]*"
_DOTTED = rf"{_IDENT}(\s*\.\s*{_IDENT})*"
_OBJECT_REF_RE = re.compile(rf"^\s*{_DOTTED}(\s*:\s*{_DOTTED})?(\s*\[[^\]]*\])?\s*$")
_SEPARATORS_RE = re.compile(r"[-_.]+")

DATA_CATEGORIES = frozenset({"data", "headers", "platlib", "purelib", "scripts"})
RESERVED_ENTRY_POINT_GROUPS = frozenset({"console_scripts", "gui_scripts"})


class FrozenMap(Mapping):
    """Read-only, hashable mapping used for every table stored on a record.

    Compares equal to a ``dict`` with the same items.
    """

    __slots__ = ("_data",)

    def __init__(self, data: Any = ()) -> None:
        self._data = dict(data)

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __hash__(self) -> int:
        return hash(frozenset(self._data.items()))

    def __repr__(self) -> str:
        return f"FrozenMap({self._data!r})"


def _freeze(value: Mapping) -> FrozenMap:
    return FrozenMap(value)


def _plain_dict(value: Mapping) -> Dict[str, Any]:
    return {k: _plain_dict(v) if isinstance(v, Mapping) else v for k, v in value.items()}


def _non_empty(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be empty")
    return value


def _check_name(value: str) -> str:
    _non_empty(value)
    if not _NAME_RE.match(value):
        raise ValueError(
            f"`{value}` is not a valid package name: use letters, digits, `-`, `_` and `.`, "
            "starting and ending with a letter or digit"
        )
    return value


def _check_version(value: str) -> str:
    _non_empty(value)
    if not _VERSION_RE.match(value.strip()):
        raise ValueError(f"`{value}` is not a valid version (expected something like `1.2.3`)")
    return value


def _check_specifier(value: str) -> str:
    _non_empty(value)
    for clause in value.split(","):
        if not _SPECIFIER_RE.match(clause):
            raise ValueError(f"`{clause.strip()}` in `{value}` is not a version constraint such as `>=3.9`")
    return value


def _check_requirement(value: str) -> str:
    _non_empty(value)
    if not _NAME_PREFIX_RE.match(value):
        raise ValueError(f"`{value}` does not start with a package name")
    return value


def _check_script_ref(value: str) -> str:
    if ":" not in value or not _OBJECT_REF_RE.match(value):
        raise ValueError(f"`{value}` is not an entry point of the form `module:function`")
    return value


def _check_object_ref(value: str) -> str:
    if not _OBJECT_REF_RE.match(value):
        raise ValueError(f"`{value}` is not an object reference of the form `module:attr`")
    return value


def _check_license_glob(value: str) -> str:
    return check_portable_glob(value, allow_anchor=False)


PackageName = Annotated[str, AfterValidator(_check_name)]
Version = Annotated[str, AfterValidator(_check_version)]
VersionSpecifier = Annotated[str, AfterValidator(_check_specifier)]
Requirement = Annotated[str, AfterValidator(_check_requirement)]
CommandName = Annotated[str, AfterValidator(_non_empty)]
ScriptRef = Annotated[str, AfterValidator(_check_script_ref)]
ObjectRef = Annotated[str, AfterValidator(_check_object_ref)]
Glob = Annotated[str, AfterValidator(check_portable_glob)]
LicenseGlob = Annotated[str, AfterValidator(_check_license_glob)]
RelativeDir = Annotated[str, AfterValidator(check_relative_dir)]

DataDirs = Annotated[Dict[str, RelativeDir], AfterValidator(_freeze), PlainSerializer(_plain_dict)]
Scripts = Annotated[Dict[CommandName, ScriptRef], AfterValidator(_freeze), PlainSerializer(_plain_dict)]
EntryPointGroup = Annotated[Dict[CommandName, ObjectRef], AfterValidator(_freeze), PlainSerializer(_plain_dict)]
EntryPoints = Annotated[Dict[str, EntryPointGroup], AfterValidator(_freeze), PlainSerializer(_plain_dict)]


class BuildBackendOptions(BaseModel):
    """Contents of ``[tool.uv.build-backend]`` and its ``data`` sub-table."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    source_include: Tuple[Glob, ...] = Field(default=(), alias="source-include")
    source_exclude: Tuple[Glob, ...] = Field(default=(), alias="source-exclude")
    wheel_exclude: Tuple[Glob, ...] = Field(default=(), alias="wheel-exclude")
    data: DataDirs = Field(default=FrozenMap())
    module_name: Optional[str] = Field(default=None, alias="module-name")
    module_root: RelativeDir = Field(default="src", alias="module-root")
    namespace: StrictBool = False
    default_excludes: StrictBool = Field(default=True, alias="default-excludes")

    @field_validator("data")
    @classmethod
    def _known_categories(cls, value: FrozenMap) -> FrozenMap:
        unknown = sorted(set(value) - DATA_CATEGORIES)
        if unknown:
            raise ValueError(
                f"unknown data categories {unknown}; expected one of {sorted(DATA_CATEGORIES)}"
            )
        return value


class BuildSystem(BaseModel):
    """Contents of ``[build-system]``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    requires: Tuple[Requirement, ...] = ()
    build_backend: Optional[str] = Field(default=None, alias="build-backend")
    backend_path: Tuple[RelativeDir, ...] = Field(default=(), alias="backend-path")

    @model_validator(mode="after")
    def _requires_declared_backend(self) -> "BuildSystem":
        if self.build_backend is not None and not self.build_backend.strip():
            raise ValueError("`build-backend` must not be empty")
        if self.build_backend and not self.requires:
            raise ValueError(f"`requires` must not be empty when `build-backend = \"{self.build_backend}\"` is declared")
        return self


class PackageManifest(BaseModel):
    """A validated package manifest.

    Instances are frozen, hashable and compare by value, so loading the same
    document twice yields equal records. Arrays are stored as tuples
    (``dependencies == ("anyio>=4,<5",)``), ``license_files`` as a frozenset
    and tables as read-only `FrozenMap`s; `to_dict` returns plain lists and
    dicts.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    name: PackageName
    version: Version
    description: Optional[str] = None
    readme: Optional[str] = None
    requires_python: Optional[VersionSpecifier] = Field(default=None, alias="requires-python")
    dependencies: Tuple[Requirement, ...] = ()
    license_files: FrozenSet[LicenseGlob] = Field(default=frozenset(), alias="license-files")
    scripts: Scripts = Field(default=FrozenMap())
    gui_scripts: Scripts = Field(default=FrozenMap(), alias="gui-scripts")
    entry_points: EntryPoints = Field(default=FrozenMap(), alias="entry-points")
    build_backend_options: BuildBackendOptions = Field(
        default_factory=BuildBackendOptions, alias="tool.uv.build-backend"
    )
    build_system: BuildSystem = Field(alias="build-system")

    @field_validator("readme", mode="before")
    @classmethod
    def _readme_table(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        if "file" in value and "text" in value:
            raise ValueError("readme table must set either `file` or `text`, not both")
        if "file" in value:
            return value["file"]
        if "text" in value:
            return value["text"]
        raise ValueError("readme table must set `file` or `text`")

    @field_validator("entry_points")
    @classmethod
    def _no_reserved_groups(cls, value: FrozenMap) -> FrozenMap:
        reserved = sorted(RESERVED_ENTRY_POINT_GROUPS & set(value))
        if reserved:
            raise ValueError(f"entry point groups {reserved} must be declared as `scripts` / `gui-scripts`")
        return value

    @property
    def normalized_name(self) -> str:
        return _SEPARATORS_RE.sub("-", self.name).lower()

    def to_dict(self) -> Dict[str, Any]:
        """Return the record as plain JSON-serialisable data, shaped like the manifest."""
        project: Dict[str, Any] = {"name": self.name, "version": self.version}
        for key, value in (
            ("description", self.description),
            ("readme", self.readme),
            ("requires-python", self.requires_python),
        ):
            if value is not None:
                project[key] = value
        project["dependencies"] = list(self.dependencies)
        project["license-files"] = sorted(self.license_files)
        if self.scripts:
            project["scripts"] = dict(self.scripts)
        if self.gui_scripts:
            project["gui-scripts"] = dict(self.gui_scripts)
        if self.entry_points:
            project["entry-points"] = {g: dict(eps) for g, eps in self.entry_points.items()}

        backend = self.build_backend_options.model_dump(by_alias=True, exclude_none=True)
        for key in ("source-include", "source-exclude", "wheel-exclude"):
            backend[key] = list(backend[key])

        build_system = self.build_system.model_dump(by_alias=True, exclude_none=True)
        build_system["requires"] = list(build_system["requires"])
        if build_system.get("backend-path"):
            build_system["backend-path"] = list(build_system["backend-path"])
        else:
            build_system.pop("backend-path", None)

        return {
            "project": project,
            "tool": {"uv": {"build-backend": backend}},
            "build-system": build_system,
        }
