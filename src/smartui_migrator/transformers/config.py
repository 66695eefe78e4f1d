"""Structural conversion of platform configuration files into ``.smartui.json``.

Every public transform returns a :class:`ConfigTransformationResult` and never
raises: parse and mapping failures fall back to a platform default document
with a single warning describing the failure.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import PurePath
from types import MappingProxyType
from typing import Literal, assert_never

import yaml
from pydantic import ValidationError

from smartui_migrator.errors import ConfigParseError
from smartui_migrator.models import ConfigTransformationResult, TransformationWarning
from smartui_migrator.schemas import MobileConfig, SmartUIConfig, WebConfig
from smartui_migrator.transformers import syntax
from smartui_migrator.transformers.literals import evaluate_config_object
from smartui_migrator.types import JsonObject, JsonValue, Platform

logger = logging.getLogger(__name__)

type SourceKind = Literal["data", "script"]
type PathLike = str | PurePath | None

GENERIC_HINT = (
    "No SmartUI equivalent; configure it via the SmartUI CLI flags or "
    "environment variables instead."
)
FALLBACK_DETAILS = (
    "The configuration file may be malformed or use unsupported syntax. "
    "A default SmartUI configuration was generated instead."
)

# Target sections already present in the input are carried through unchanged.
CARRIED_KEYS = ("projectName", "web", "mobile")

_RESOLUTION = re.compile(r"^\s*(\d+)\s*[xX×]\s*(\d+)\s*$")


@dataclass(frozen=True)
class MappingTable:
    """Key paths a platform mapping understands.

    ``mapped`` paths are copied into the target, ``recognized`` paths are
    consumed silently, ``non_mappable`` paths carry their own remediation hint.
    Children of ``containers`` are audited one level deep.
    """

    mapped: frozenset[str]
    recognized: frozenset[str] = frozenset()
    non_mappable: Mapping[str, str] = MappingProxyType({})
    containers: frozenset[str] = frozenset()


PERCY_TABLE = MappingTable(
    mapped=frozenset(
        {"snapshot.widths", "snapshot.min-height", "discovery.allowed-hostnames"}
    ),
    recognized=frozenset({"version"}),
    non_mappable=MappingProxyType(
        {
            "snapshot.percy-css": (
                "SmartUI does not inject custom CSS; hide dynamic content with "
                "`ignoreDOM` selectors in the snapshot options instead."
            ),
            "snapshot.enable-javascript": (
                "SmartUI always renders snapshots with JavaScript enabled; "
                "remove this option."
            ),
            "snapshot.scope": (
                "Pass an `element` selector in the snapshot options instead."
            ),
            "discovery.network-idle-timeout": (
                "Use the `waitForTimeout` snapshot option instead."
            ),
            "discovery.disallowed-hostnames": GENERIC_HINT,
            "discovery.user-agent": GENERIC_HINT,
            "discovery.request-headers": GENERIC_HINT,
            "discovery.authorization": (
                "Provide basic-auth credentials through the SmartUI `basicAuthorization` "
                "option instead."
            ),
            "discovery.cookies": GENERIC_HINT,
            "discovery.concurrency": GENERIC_HINT,
            "discovery.launch-options": GENERIC_HINT,
            "discovery.disable-cache": GENERIC_HINT,
            "static": "Use `npx smartui capture` with a static site list instead.",
            "upload": "Use `npx smartui upload` for image uploads instead.",
        }
    ),
    containers=frozenset({"snapshot", "discovery"}),
)

APPLITOOLS_TABLE = MappingTable(
    mapped=frozenset({"browser"}),
    non_mappable=MappingProxyType(
        {
            "appName": "Set the SmartUI project name with `projectName` instead.",
            "batchName": "SmartUI builds are named with the `--buildName` CLI flag.",
            "batchId": "SmartUI groups snapshots per build automatically.",
            "apiKey": "Export the SmartUI project token as `PROJECT_TOKEN` instead.",
            "storybookUrl": "Pass the Storybook URL to `npx smartui storybook` instead.",
            "storybook": "Configure Storybook capture with `npx smartui storybook` instead.",
            "serverUrl": "SmartUI uses the LambdaTest cloud endpoint; remove this option.",
        }
    ),
)

_SAUCE_FIELD_HINTS: Mapping[str, str] = MappingProxyType(
    {
        "build": "Name SmartUI builds with the `--buildName` CLI flag instead.",
        "name": "Set the SmartUI project name with `projectName` instead.",
        "tags": GENERIC_HINT,
        "region": "SmartUI uses the LambdaTest cloud endpoint; remove this option.",
        "username": "Export `LT_USERNAME` instead.",
        "accessKey": "Export `LT_ACCESS_KEY` instead.",
    }
)
_SAUCE_SETTINGS_FIELDS = frozenset(
    {"browserName", "browser", "browsers", "screenResolution", "viewports", "deviceName", "devices"}
)
_SAUCE_SECTIONS: tuple[tuple[str, ...], ...] = (
    ("saucelabs",),
    ("sauceVisual",),
    ("e2e", "saucelabs"),
    ("use", "sauceVisual"),
)

SAUCE_TABLE = MappingTable(
    mapped=frozenset(
        _SAUCE_SETTINGS_FIELDS | {f"settings.{field}" for field in _SAUCE_SETTINGS_FIELDS}
    ),
    recognized=frozenset(
        {
            "apiVersion",
            "kind",
            "sauce",
            "suites",
            "defaults",
            "docker",
            "cypress",
            "playwright",
            "rootDir",
            "artifacts",
            "reporters",
            "npm",
            "env",
            "showConsoleLog",
            "saucelabs",
            "sauceVisual",
            "e2e",
            "use",
        }
    ),
    non_mappable=MappingProxyType(
        {
            f"{scope}{field}": hint
            for scope in ("", "metadata.", "settings.")
            for field, hint in _SAUCE_FIELD_HINTS.items()
        }
    ),
    containers=frozenset({"metadata", "settings"}),
)


def _unsupported(platform: Platform, path: str, hint: str) -> TransformationWarning:
    return TransformationWarning(
        message=f"Unsupported {platform} option `{path}`", details=hint
    )


def audit_fields(
    platform: Platform, table: MappingTable, document: JsonObject
) -> list[TransformationWarning]:
    """Return one warning per source field the mapping table does not map.

    Parameters
    ----------
    platform : Platform
        Source platform, used in warning messages.
    table : MappingTable
        Field table for the platform.
    document : dict[str, JsonValue]
        Parsed source document.

    Returns
    -------
    list[TransformationWarning]
        Warnings in document order.
    """
    warnings: list[TransformationWarning] = []

    def _check(path: str) -> None:
        if path in table.mapped or path in table.recognized:
            return
        warnings.append(
            _unsupported(platform, path, table.non_mappable.get(path, GENERIC_HINT))
        )

    for key, value in document.items():
        if key in CARRIED_KEYS or key == "version":
            continue
        if key in table.containers and isinstance(value, dict):
            for child in value:
                _check(f"{key}.{child}")
        else:
            _check(key)
    return warnings


def _carried(document: JsonObject, warnings: list[TransformationWarning]) -> SmartUIConfig:
    payload = {key: document[key] for key in CARRIED_KEYS if key in document}
    if not payload:
        return SmartUIConfig()
    try:
        return SmartUIConfig.model_validate(payload)
    except ValidationError as exc:
        warnings.append(
            TransformationWarning(
                message="Existing SmartUI sections were ignored",
                details=f"They do not match the SmartUI schema: {exc.error_count()} error(s).",
            )
        )
        return SmartUIConfig()


def _section(document: JsonObject, *path: str) -> JsonObject | None:
    current: JsonValue = document
    for key in path:
        if not isinstance(current, dict) or key not in current:
            return None
        current = current[key]
    return current if isinstance(current, dict) else None


def _append_unique(target: list, value: object) -> None:
    if value not in target:
        target.append(value)


def default_config(platform: Platform) -> SmartUIConfig:
    """Return the hardcoded fallback document for ``platform``."""
    match platform:
        case Platform.PERCY:
            return SmartUIConfig(
                web=WebConfig(
                    viewports=[[1280], [768], [375]],
                    min_height=600,
                    allowed_hostnames=[],
                )
            )
        case Platform.APPLITOOLS | Platform.SAUCE_LABS_VISUAL:
            return SmartUIConfig(
                web=WebConfig(
                    browsers=["chrome", "firefox", "safari"],
                    viewports=[[1280, 720], [768, 1024], [375, 667]],
                ),
                mobile=MobileConfig(
                    devices=["iPhone X", "Samsung Galaxy S10"], orientation="portrait"
                ),
            )
        case _:
            assert_never(platform)


def _map_percy(
    document: JsonObject, kind: SourceKind
) -> tuple[SmartUIConfig, list[TransformationWarning]]:
    del kind
    warnings = audit_fields(Platform.PERCY, PERCY_TABLE, document)
    config = _carried(document, warnings)
    snapshot = _section(document, "snapshot") or {}
    discovery = _section(document, "discovery") or {}

    web = config.web or WebConfig()
    updates: dict[str, object] = {}
    if "widths" in snapshot:
        updates["viewports"] = [[int(width)] for width in snapshot["widths"] or []]
    if "min-height" in snapshot:
        updates["min_height"] = int(snapshot["min-height"])
    if "allowed-hostnames" in discovery:
        updates["allowed_hostnames"] = [
            str(host) for host in discovery["allowed-hostnames"] or []
        ]
    elif web.allowed_hostnames is None:
        updates["allowed_hostnames"] = []
    web = WebConfig.model_validate({**web.model_dump(), **updates})
    return config.model_copy(update={"web": web}), warnings


def _device_name(entry: JsonObject) -> tuple[str, str | None] | None:
    for candidate in (
        entry,
        entry.get("iosDeviceInfo"),
        entry.get("chromeEmulationInfo"),
        entry.get("androidDeviceInfo"),
    ):
        if isinstance(candidate, dict) and "deviceName" in candidate:
            orientation = candidate.get("screenOrientation")
            if isinstance(orientation, str) and orientation.lower() in (
                "portrait",
                "landscape",
            ):
                return str(candidate["deviceName"]), orientation.lower()
            return str(candidate["deviceName"]), None
    return None


def _map_applitools(
    document: JsonObject, kind: SourceKind
) -> tuple[SmartUIConfig, list[TransformationWarning]]:
    del kind
    warnings = audit_fields(Platform.APPLITOOLS, APPLITOOLS_TABLE, document)
    config = _carried(document, warnings)
    web = config.web or WebConfig(browsers=[])
    mobile = config.mobile or MobileConfig()

    if "browser" in document:
        entries = document["browser"]
        if isinstance(entries, dict):
            entries = [entries]
        browsers: list[str] = []
        viewports: list[list[int]] = []
        devices: list[str] = []
        orientation: str | None = None
        for entry in entries if isinstance(entries, list) else []:
            if isinstance(entry, dict) and all(k in entry for k in ("width", "height", "name")):
                _append_unique(browsers, str(entry["name"]))
                _append_unique(viewports, [int(entry["width"]), int(entry["height"])])
                continue
            device = _device_name(entry) if isinstance(entry, dict) else None
            if device is None:
                warnings.append(
                    TransformationWarning(
                        message="Unrecognized Applitools browser entry was skipped",
                        details=f"Entry {entry!r} has neither width/height/name nor deviceName.",
                    )
                )
                continue
            _append_unique(devices, device[0])
            orientation = orientation or device[1]
        web = WebConfig(browsers=browsers, viewports=viewports)
        mobile = MobileConfig(devices=devices, orientation=orientation or "portrait")

    if web.browsers is None:
        web = web.model_copy(update={"browsers": []})
    return config.model_copy(update={"web": web, "mobile": mobile}), warnings


@dataclass
class _SauceCollector:
    browsers: list[str]
    viewports: list[list[int]]
    devices: list[str]
    warnings: list[TransformationWarning]

    def add_settings(self, settings: JsonObject) -> None:
        for key in ("browserName", "browser"):
            if isinstance(settings.get(key), str):
                _append_unique(self.browsers, settings[key])
        for browser in _as_list(settings.get("browsers")):
            name = (
                (browser.get("browserName") or browser.get("name"))
                if isinstance(browser, dict)
                else browser
            )
            if isinstance(name, str):
                _append_unique(self.browsers, name)
        if "screenResolution" in settings:
            self.add_resolution(settings["screenResolution"])
        for viewport in _as_list(settings.get("viewports")):
            if isinstance(viewport, list) and len(viewport) == 2:
                _append_unique(self.viewports, [int(viewport[0]), int(viewport[1])])
            elif isinstance(viewport, dict) and "width" in viewport and "height" in viewport:
                _append_unique(self.viewports, [int(viewport["width"]), int(viewport["height"])])
        if isinstance(settings.get("deviceName"), str):
            _append_unique(self.devices, settings["deviceName"])
        for device in _as_list(settings.get("devices")):
            name = (
                (device.get("name") or device.get("deviceName"))
                if isinstance(device, dict)
                else device
            )
            if isinstance(name, str):
                _append_unique(self.devices, name)

    def add_resolution(self, value: JsonValue) -> None:
        match = _RESOLUTION.match(str(value))
        if match is None:
            self.warnings.append(
                TransformationWarning(
                    message=f"Unrecognized screen resolution `{value}` was skipped",
                    details="Expected a WIDTHxHEIGHT value such as 1920x1080.",
                )
            )
            return
        _append_unique(self.viewports, [int(match.group(1)), int(match.group(2))])


def _as_list(value: JsonValue) -> list[JsonValue]:
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


def _sauce_section(document: JsonObject) -> tuple[str | None, JsonObject]:
    for path in _SAUCE_SECTIONS:
        section = _section(document, *path)
        if section is not None:
            return ".".join(path), section
    return None, document


def _map_sauce(
    document: JsonObject, kind: SourceKind
) -> tuple[SmartUIConfig, list[TransformationWarning]]:
    warnings = audit_fields(Platform.SAUCE_LABS_VISUAL, SAUCE_TABLE, document)
    config = _carried(document, warnings)

    scoped: list[tuple[str, JsonObject | None]] = [
        ("sauce", _section(document, "sauce")),
        ("sauce.metadata", _section(document, "sauce", "metadata")),
    ]
    section_path, section = (None, document)
    if kind == "script":
        section_path, section = _sauce_section(document)
        if section_path is not None:
            scoped.append((section_path, section))
    for scope, values in scoped:
        for field, hint in _SAUCE_FIELD_HINTS.items():
            if values is not None and field in values:
                warnings.append(
                    _unsupported(Platform.SAUCE_LABS_VISUAL, f"{scope}.{field}", hint)
                )

    collector = _SauceCollector([], [], [], warnings)
    if kind == "script":
        collector.add_settings(section)
    else:
        if isinstance(document.get("settings"), dict):
            collector.add_settings(document["settings"])
        for suite in _as_list(document.get("suites")):
            if not isinstance(suite, dict):
                continue
            collector.add_settings(suite)
            if isinstance(suite.get("settings"), dict):
                collector.add_settings(suite["settings"])

    fallback = default_config(Platform.SAUCE_LABS_VISUAL)
    base_web = config.web or fallback.web or WebConfig()
    base_mobile = config.mobile or fallback.mobile or MobileConfig()
    web = base_web.model_copy(
        update={
            "browsers": collector.browsers or base_web.browsers or [],
            "viewports": collector.viewports or base_web.viewports,
        }
    )
    mobile = base_mobile.model_copy(
        update={"devices": collector.devices or base_mobile.devices}
    )
    return config.model_copy(update={"web": web, "mobile": mobile}), warnings


type Mapper = Callable[
    [JsonObject, SourceKind], tuple[SmartUIConfig, list[TransformationWarning]]
]


def _is_json_document(document_text: str) -> bool:
    if not document_text.lstrip().startswith("{"):
        return False
    try:
        return isinstance(yaml.safe_load(document_text), dict)
    except yaml.YAMLError:
        return False


def _source_kind(platform: Platform, document_text: str, file_path: PathLike) -> SourceKind:
    """Pick the parser by suffix, or by content when no path is known."""
    if file_path is None:
        if _is_json_document(document_text):
            return "data"
        return "script" if platform is Platform.APPLITOOLS else "data"
    if PurePath(file_path).suffix.lower() in syntax.SCRIPT_SUFFIXES:
        return "script"
    return "data"


def load_document(
    platform: Platform, document_text: str, file_path: PathLike = None
) -> tuple[JsonObject, SourceKind]:
    """Parse a configuration document without executing it.

    Raises
    ------
    ConfigParseError
        If the document is empty or its root is not a mapping.
    yaml.YAMLError
        If a data document is not valid YAML/JSON.
    """
    kind = _source_kind(platform, document_text, file_path)
    if kind == "script":
        return evaluate_config_object(document_text, syntax.dialect_for(file_path)), kind
    document = yaml.safe_load(document_text)
    if not isinstance(document, dict):
        raise ConfigParseError("expected a mapping at the document root")
    return {str(key): value for key, value in document.items()}, kind


def _transform(
    platform: Platform, mapper: Mapper, document_text: str, file_path: PathLike
) -> ConfigTransformationResult:
    try:
        document, kind = load_document(platform, document_text, file_path)
        config, warnings = mapper(document, kind)
        return ConfigTransformationResult(config.to_json(), tuple(warnings))
    except Exception as exc:
        logger.debug("Falling back to default %s config: %s", platform, exc)
        warning = TransformationWarning(
            message=f"Failed to parse {platform} configuration: {exc}",
            details=FALLBACK_DETAILS,
        )
        return ConfigTransformationResult(default_config(platform).to_json(), (warning,))


def transform_percy_config(
    document_text: str, file_path: PathLike = None
) -> ConfigTransformationResult:
    """Convert a Percy ``.percy.yml``/``.percy.js`` document.

    Parameters
    ----------
    document_text : str
        Source configuration text.
    file_path : str | PurePath | None, optional
        Source path, used only to pick the parser from its suffix.

    Returns
    -------
    ConfigTransformationResult
        SmartUI configuration plus non-mappable field warnings.
    """
    return _transform(Platform.PERCY, _map_percy, document_text, file_path)


def transform_applitools_config(
    document_text: str, file_path: PathLike = None
) -> ConfigTransformationResult:
    """Convert an ``applitools.config.js``/``.ts`` document."""
    return _transform(Platform.APPLITOOLS, _map_applitools, document_text, file_path)


def transform_sauce_labs_config(
    document_text: str, file_path: PathLike = None
) -> ConfigTransformationResult:
    """Convert a ``saucectl.yml`` or ``sauce.config.js`` document."""
    return _transform(Platform.SAUCE_LABS_VISUAL, _map_sauce, document_text, file_path)


def transform_config(
    platform: Platform, document_text: str, file_path: PathLike = None
) -> ConfigTransformationResult:
    """Dispatch to the config transform for ``platform``."""
    match platform:
        case Platform.PERCY:
            return transform_percy_config(document_text, file_path)
        case Platform.APPLITOOLS:
            return transform_applitools_config(document_text, file_path)
        case Platform.SAUCE_LABS_VISUAL:
            return transform_sauce_labs_config(document_text, file_path)
        case _:
            assert_never(platform)


class ConfigTransformer:
    """Object facade over the module-level config transforms."""

    def transform_percy_config(
        self, document_text: str, file_path: PathLike = None
    ) -> ConfigTransformationResult:
        return transform_percy_config(document_text, file_path)

    def transform_applitools_config(
        self, document_text: str, file_path: PathLike = None
    ) -> ConfigTransformationResult:
        return transform_applitools_config(document_text, file_path)

    def transform_sauce_labs_config(
        self, document_text: str, file_path: PathLike = None
    ) -> ConfigTransformationResult:
        return transform_sauce_labs_config(document_text, file_path)

    def transform(
        self, platform: Platform, document_text: str, file_path: PathLike = None
    ) -> ConfigTransformationResult:
        return transform_config(platform, document_text, file_path)
