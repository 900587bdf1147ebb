"""Typed, layered configuration for the signing client.

Layers (later wins):
    code       dataclass defaults below
    defaults   ``core/config/defaults.ini`` shipped with the project
    env        environment variables ``DOCSIGN_<SECTION>__<KEY>``
    machine    ``core/config/config.ini`` (or the path handed to ConfigService)
    user       ``$XDG_CONFIG_HOME/docsign/config.ini`` / ``%APPDATA%\\DocSign\\config.ini``

Every merged value remembers the layer it came from (``meta_source``) so a
support person can tell why a base URL or log level is what it is.
"""
from __future__ import annotations

import configparser
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from threading import RLock
from typing import Any, Callable, Dict, List, NamedTuple, Tuple, get_type_hints


def _find_project_root() -> Path:
    here = Path(__file__).resolve()
    for parent in here.parents:
        if (parent / "core").is_dir():
            return parent
    return here.parent


PROJECT_ROOT = _find_project_root()
CONFIG_DIR = PROJECT_ROOT / "core" / "config"
DEFAULTS_INI = CONFIG_DIR / "defaults.ini"
MACHINE_INI = CONFIG_DIR / "config.ini"
DATA_DIR = PROJECT_ROOT / "databases"

ENV_PREFIX = "DOCSIGN_"
_TRUE = {"1", "true", "yes", "on"}

Sections = Dict[str, Dict[str, Any]]


# --------------------------------------------------------------------------- #
#  Sections
# --------------------------------------------------------------------------- #

@dataclass
class ApiConfig:
    base_url: str = "http://localhost:8080/api"
    asset_base_url: str = "http://localhost:8080"
    timeout_seconds: float = 15.0


@dataclass
class StorageConfig:
    local_db: Path = DATA_DIR / "local-store.db"
    encrypt_vault: bool = False


@dataclass
class LoggingConfig:
    db_path: Path = DATA_DIR / "logs.db"
    level: str = "INFO"


@dataclass
class SignatureSettings:
    stroke_width: int = 3
    surface_width: int = 600
    surface_height: int = 200
    luminance_threshold: int = 130


# INI section name -> (attribute on ConfigService, dataclass)
SECTIONS: Dict[str, Tuple[str, type]] = {
    "Api": ("api", ApiConfig),
    "Storage": ("storage", StorageConfig),
    "Logging": ("logging", LoggingConfig),
    "Signature": ("signature", SignatureSettings),
}


class Origin(NamedTuple):
    layer: str
    source: str


# --------------------------------------------------------------------------- #
#  Layer readers
# --------------------------------------------------------------------------- #

def _code_defaults() -> Sections:
    return {name: asdict(cls()) for name, (_, cls) in SECTIONS.items()}


def _ini(path: Path) -> Sections:
    if not path.exists():
        return {}
    parser = configparser.ConfigParser()
    parser.read(path, encoding="utf-8")
    return {section: dict(parser.items(section)) for section in parser.sections()}


def _environment() -> Sections:
    out: Sections = {}
    for name, value in os.environ.items():
        if not name.startswith(ENV_PREFIX):
            continue
        section, sep, key = name[len(ENV_PREFIX):].partition("__")
        if sep and section and key:
            out.setdefault(section.title(), {})[key.lower()] = value
    return out


def _user_ini() -> Path:
    if os.name == "nt":
        base = os.environ.get("APPDATA") or Path.home() / "AppData" / "Roaming"
        return Path(base) / "DocSign" / "config.ini"
    base = os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config"
    return Path(base) / "docsign" / "config.ini"


# --------------------------------------------------------------------------- #
#  Coercion
# --------------------------------------------------------------------------- #

def _coerce(value: Any, typ: Any) -> Any:
    if isinstance(value, typ if isinstance(typ, type) else ()):
        return value
    if typ is bool:
        return str(value).strip().lower() in _TRUE
    if typ is Path:
        return Path(str(value)).expanduser()
    return typ(value)


def _section(cls: type, values: Dict[str, Any]) -> Any:
    hints = get_type_hints(cls)
    return cls(**{f.name: _coerce(values[f.name], hints[f.name]) for f in fields(cls) if f.name in values})


# --------------------------------------------------------------------------- #
#  ConfigService
# --------------------------------------------------------------------------- #

class ConfigService:
    """Merged view over all layers; section objects are rebuilt on ``reload``."""

    api: ApiConfig
    storage: StorageConfig
    logging: LoggingConfig
    signature: SignatureSettings

    def __init__(self, *, machine_ini: Path | None = None) -> None:
        self._lock = RLock()
        self._machine_ini = machine_ini or MACHINE_INI
        self.reload()

    def _layers(self) -> List[Tuple[Origin, Callable[[], Sections]]]:
        user_ini = _user_ini()
        return [
            (Origin("code", "embedded"), _code_defaults),
            (Origin("defaults.ini", str(DEFAULTS_INI)), lambda: _ini(DEFAULTS_INI)),
            (Origin("env", "os.environ"), _environment),
            (Origin("machine", str(self._machine_ini)), lambda: _ini(self._machine_ini)),
            (Origin("user", str(user_ini)), lambda: _ini(user_ini)),
        ]

    def reload(self) -> None:
        merged: Sections = {}
        sources: Dict[Tuple[str, str], Origin] = {}
        for origin, read in self._layers():
            for section, values in read().items():
                target = merged.setdefault(section, {})
                for key, value in values.items():
                    target[key] = value
                    sources[(section, key)] = origin
        with self._lock:
            self._merged = merged
            self._sources = sources
            for name, (attr, cls) in SECTIONS.items():
                setattr(self, attr, _section(cls, merged.get(name, {})))

    def get(self, section: str, key: str, *, cast: Callable[[Any], Any] | type = str) -> Any:
        """Raw merged value, optionally cast; ``None`` when no layer defines it."""
        value = self._merged.get(section, {}).get(key)
        if value is None:
            return None
        return _coerce(value, cast) if isinstance(cast, type) else cast(value)

    def meta_source(self, section: str, key: str) -> Dict[str, str] | None:
        origin = self._sources.get((section, key))
        return origin._asdict() if origin else None


config_service = ConfigService()
