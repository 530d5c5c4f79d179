"""
Scrape targets and their YAML configuration.

A Target is a named scrape profile selected with ``?target=<name>``. The
configuration file has the shape::

    targets:
      - name: compute
        fs_mounts: [/fs/scratch, /fs/project]
        collectors: [mount, mmpmon, mmgetstate]
        filesystems:
          mmdf: [scratch]
        thresholds:
          waiter: 30
        timeouts:
          mmdf: 120

Targets live for the whole process. Each carries a lock so overlapping
scrapes of the same Target run one after the other, and a cache of the
``mmlsfs`` filesystem list that only lives for one scrape.
"""

import os
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

import yaml

from gpfs_exporter.errors import ConfigurationError, ErrorCode

DEFAULT_TARGET = "default"


class FilesystemCache:
    """
    Per-scrape cache of the filesystem list reported by ``mmlsfs``.

    The first collector that needs the list runs the loader; the others in
    the same scrape reuse its result, or its exception. ``clear()`` is called
    by the dispatcher when the scrape ends.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._loaded = False
        self._filesystems: List[str] = []
        self._error: Optional[BaseException] = None
        self.loads = 0

    def get(self, loader: Callable[[], List[str]]) -> List[str]:
        with self._lock:
            if not self._loaded:
                self.loads += 1
                try:
                    self._filesystems = list(loader())
                except Exception as e:
                    self._error = e
                self._loaded = True
            if self._error is not None:
                raise self._error
            return list(self._filesystems)

    def clear(self):
        with self._lock:
            self._loaded = False
            self._filesystems = []
            self._error = None


def _string_list(value, parameter: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        raise ConfigurationError(
            f"Invalid value for {parameter}",
            parameter=parameter,
            expected="list of strings",
            actual=value,
        )
    return list(value)


def _number_map(value, parameter: str) -> Dict[str, float]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigurationError(f"Invalid value for {parameter}", parameter=parameter,
                                 expected="mapping of collector to number", actual=value)
    result = {}
    for key, number in value.items():
        if isinstance(number, bool) or not isinstance(number, (int, float)):
            raise ConfigurationError(f"Invalid value for {parameter}.{key}", parameter=f"{parameter}.{key}",
                                     expected="number", actual=number)
        result[str(key)] = float(number)
    return result


@dataclass
class Target:
    """
    Named scrape profile.

    Attributes:
        name: Target name used in the ``target`` query parameter.
        collectors: Enabled collectors; empty means the command line defaults.
        fs_mounts: Mount paths checked by the mount collector.
        filesystems: Filesystem allowlist per collector.
        thresholds: Per-collector thresholds (the waiter log threshold).
        timeouts: Per-collector command timeout overrides in seconds.
    """
    name: str = DEFAULT_TARGET
    collectors: List[str] = field(default_factory=list)
    fs_mounts: List[str] = field(default_factory=list)
    filesystems: Dict[str, List[str]] = field(default_factory=dict)
    thresholds: Dict[str, float] = field(default_factory=dict)
    timeouts: Dict[str, float] = field(default_factory=dict)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)
    fs_cache: FilesystemCache = field(default_factory=FilesystemCache, repr=False, compare=False)

    def filesystems_for(self, collector: str) -> List[str]:
        return list(self.filesystems.get(collector, []))

    def timeout_for(self, collector: str, default: float) -> float:
        return self.timeouts.get(collector, default)

    def threshold_for(self, collector: str, default: float) -> float:
        return self.thresholds.get(collector, default)

    @classmethod
    def from_dict(cls, data: dict) -> "Target":
        if not isinstance(data, dict):
            raise ConfigurationError("Each target must be a mapping", parameter="targets",
                                     expected="mapping", actual=data)
        name = data.get("name")
        if not name or not isinstance(name, str):
            raise ConfigurationError("Target is missing a name", parameter="targets[].name",
                                     code=ErrorCode.CONFIG_MISSING_REQUIRED)

        filesystems = data.get("filesystems") or {}
        if not isinstance(filesystems, dict):
            raise ConfigurationError(f"Invalid filesystems for target {name}", parameter="filesystems",
                                     expected="mapping of collector to filesystem list", actual=filesystems)

        return cls(
            name=name,
            collectors=_string_list(data.get("collectors"), "collectors"),
            fs_mounts=_string_list(data.get("fs_mounts"), "fs_mounts"),
            filesystems={str(k): _string_list(v, f"filesystems.{k}") for k, v in filesystems.items()},
            thresholds=_number_map(data.get("thresholds"), "thresholds"),
            timeouts=_number_map(data.get("timeouts"), "timeouts"),
        )


class Targets:
    """Set of Targets loaded from the configuration file."""

    def __init__(self, targets: Iterable[Target] = ()):
        self._targets: Dict[str, Target] = {}
        for target in targets:
            if target.name in self._targets:
                raise ConfigurationError(f"Duplicate target {target.name}", parameter="targets[].name",
                                         actual=target.name)
            self._targets[target.name] = target
        self._default = self._targets.get(DEFAULT_TARGET) or Target(name=DEFAULT_TARGET)

    def __len__(self):
        return len(self._targets)

    def __iter__(self):
        return iter(self._targets.values())

    @property
    def names(self) -> List[str]:
        return list(self._targets)

    def get_target(self, name: Optional[str] = None) -> Target:
        """
        Return the Target for a scrape.

        Args:
            name: Target name. None, empty and ``default`` select the default
                Target, which exists even when the configuration has none.

        Raises:
            ConfigurationError: No target with that name is configured.
        """
        if not name or name == DEFAULT_TARGET:
            return self._default
        target = self._targets.get(name)
        if target is None:
            raise ConfigurationError(
                f"Unknown target {name}",
                parameter="target",
                expected=", ".join(self.names) or "(none configured)",
                actual=name,
                code=ErrorCode.CONFIG_UNKNOWN_TARGET,
            )
        return target

    def validate_collectors(self, known: Iterable[str]):
        known = set(known)
        for target in self._targets.values():
            unknown = [c for c in target.collectors if c not in known]
            if unknown:
                raise ConfigurationError(
                    f"Target {target.name} enables unknown collectors",
                    parameter="collectors",
                    expected=", ".join(sorted(known)),
                    actual=", ".join(unknown),
                )

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "Targets":
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigurationError("Config file must be a mapping", expected="mapping with 'targets'",
                                     actual=type(data).__name__)
        targets = data.get("targets") or []
        if not isinstance(targets, list):
            raise ConfigurationError("'targets' must be a list", parameter="targets",
                                     expected="list", actual=type(targets).__name__)
        return cls(Target.from_dict(entry) for entry in targets)

    @classmethod
    def load(cls, path: Optional[str]) -> "Targets":
        """
        Load targets from a YAML file.

        Args:
            path: Config file path, None for no file (default Target only).

        Raises:
            ConfigurationError: File missing, unreadable, not YAML, or bad schema.
        """
        if not path:
            return cls()
        if not os.path.isfile(path):
            raise ConfigurationError(f"Config file not found: {path}", parameter="--config.file",
                                     code=ErrorCode.CONFIG_FILE_NOT_FOUND)
        try:
            with open(path, "r") as config_file:
                data = yaml.safe_load(config_file)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Unable to parse config file {path}", parameter="--config.file",
                                     actual=str(e), code=ErrorCode.CONFIG_PARSE_ERROR) from e
        except OSError as e:
            raise ConfigurationError(f"Unable to read config file {path}", parameter="--config.file",
                                     actual=str(e), code=ErrorCode.CONFIG_FILE_NOT_FOUND) from e
        return cls.from_dict(data)
