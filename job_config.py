# job_config.py
#
# Drill settings access.
# Single responsibility: read job_settings.ini [drill] and expose normalized values.

import os
import configparser
from dataclasses import dataclass
from typing import Optional

# Defaults (can be overridden in job_settings.ini [drill])
SECTION = "drill"
TOOL_NUMBER_BASE = 10
GENERATION_SOFTWARE = "tscircuit"
FILE_FUNCTION = "Plated,1,2,PTH"
FORMAT_VERSION = 2
UNIT_SYSTEM = "METRIC"
COORD_DECIMALS = 4
DIAMETER_DECIMALS = 6


def _job_settings_paths():
    paths = []

    env = os.environ.get("JOB_SETTINGS_INI", "").strip()
    if env:
        paths.append(env)

    try:
        here = os.path.dirname(os.path.abspath(__file__))
        paths.append(os.path.join(here, "job_settings.ini"))
    except Exception:
        pass

    paths.append(os.path.join(os.getcwd(), "job_settings.ini"))

    out = []
    seen = set()
    for p in paths:
        p = os.path.abspath(p)
        if p not in seen:
            seen.add(p)
            out.append(p)
    return out


def _job_cfg() -> configparser.ConfigParser:
    cfg = configparser.ConfigParser()
    for p in _job_settings_paths():
        try:
            if os.path.exists(p):
                cfg.read(p)
                if cfg.sections():
                    break
        except (OSError, configparser.Error):
            continue
    return cfg


def job_getint(section: str, key: str, default: int, cfg: Optional[configparser.ConfigParser] = None) -> int:
    try:
        cfg = cfg if cfg is not None else _job_cfg()
        return int(cfg.getint(section, key, fallback=default))
    except (ValueError, configparser.Error):
        return int(default)


def job_getbool(section: str, key: str, default: bool, cfg: Optional[configparser.ConfigParser] = None) -> bool:
    try:
        cfg = cfg if cfg is not None else _job_cfg()
        return cfg.getboolean(section, key, fallback=default)
    except (ValueError, configparser.Error):
        return bool(default)


def job_getstr(section: str, key: str, default: str = "", cfg: Optional[configparser.ConfigParser] = None) -> str:
    try:
        cfg = cfg if cfg is not None else _job_cfg()
        v = cfg.get(section, key, fallback=default)
        return (v or default).strip()
    except configparser.Error:
        return (default or "").strip()


# ---- Excellon header / numbering settings ----

def get_tool_number_base(cfg=None) -> int:
    return max(1, job_getint(SECTION, "tool_number_base", TOOL_NUMBER_BASE, cfg))


def get_generation_software(cfg=None) -> str:
    return job_getstr(SECTION, "generation_software", GENERATION_SOFTWARE, cfg) or GENERATION_SOFTWARE


def get_file_function(cfg=None) -> str:
    return job_getstr(SECTION, "file_function", FILE_FUNCTION, cfg) or FILE_FUNCTION


def get_format_version(cfg=None) -> int:
    v = job_getint(SECTION, "format_version", FORMAT_VERSION, cfg)
    return v if v in (1, 2) else FORMAT_VERSION


def get_unit_system(cfg=None) -> str:
    u = job_getstr(SECTION, "unit_system", UNIT_SYSTEM, cfg).upper()
    return u if u in ("METRIC", "INCH") else UNIT_SYSTEM


def get_leading_zero_mode(cfg=None) -> Optional[str]:
    m = job_getstr(SECTION, "leading_zero_mode", "", cfg).upper()
    return m if m in ("LZ", "TZ") else None


def get_coord_decimals(cfg=None) -> int:
    return min(8, max(1, job_getint(SECTION, "coord_decimals", COORD_DECIMALS, cfg)))


def get_diameter_decimals(cfg=None) -> int:
    return min(8, max(1, job_getint(SECTION, "diameter_decimals", DIAMETER_DECIMALS, cfg)))


def get_flip_y_axis(cfg=None) -> bool:
    return job_getbool(SECTION, "flip_y_axis", False, cfg)


def get_include_plated(cfg=None) -> bool:
    return job_getbool(SECTION, "include_plated", True, cfg)


@dataclass(frozen=True)
class DrillSettings:
    tool_number_base: int = TOOL_NUMBER_BASE
    generation_software: str = GENERATION_SOFTWARE
    file_function: str = FILE_FUNCTION
    format_version: int = FORMAT_VERSION
    unit_system: str = UNIT_SYSTEM
    leading_zero_mode: Optional[str] = None
    coord_decimals: int = COORD_DECIMALS
    diameter_decimals: int = DIAMETER_DECIMALS
    flip_y_axis: bool = False
    include_plated: bool = True


def load_drill_settings() -> DrillSettings:
    cfg = _job_cfg()
    return DrillSettings(
        tool_number_base=get_tool_number_base(cfg),
        generation_software=get_generation_software(cfg),
        file_function=get_file_function(cfg),
        format_version=get_format_version(cfg),
        unit_system=get_unit_system(cfg),
        leading_zero_mode=get_leading_zero_mode(cfg),
        coord_decimals=get_coord_decimals(cfg),
        diameter_decimals=get_diameter_decimals(cfg),
        flip_y_axis=get_flip_y_axis(cfg),
        include_plated=get_include_plated(cfg),
    )
