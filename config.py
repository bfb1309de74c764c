# Settings

import json
import logging
import os
from dataclasses import asdict, dataclass, fields

log = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


@dataclass
class InspectorOptions:
    auto_expand: bool = True
    auto_hide: bool = True
    auto_rewind: bool = True
    export_indent: int = 0
    export_dir: str = "."
    serializer: bool = True


def settings_path() -> str:
    return os.path.join(os.getcwd(), "settings.json")


def load_options(path: str = None) -> InspectorOptions:
    """Options from a JSON file; unknown keys are ignored, bad files give defaults."""
    opts = InspectorOptions()
    path = path or settings_path()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        return opts
    except (OSError, ValueError) as e:
        log.warning("Ignoring settings file %s: %s", path, e)
        return opts
    if not isinstance(data, dict):
        return opts
    for f in fields(InspectorOptions):
        if f.name not in data:
            continue
        try:
            setattr(opts, f.name, type(f.default)(data[f.name]))
        except (TypeError, ValueError):
            log.warning("Bad value for %s in %s", f.name, path)
    opts.export_indent = max(0, opts.export_indent)
    return opts


def save_options(opts: InspectorOptions, path: str = None) -> None:
    path = path or settings_path()
    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(asdict(opts), f, indent=2)
    except OSError as e:
        log.warning("Could not save settings to %s: %s", path, e)


def _parse_level(name, default: int) -> int:
    if not name:
        return default
    level = logging.getLevelName(str(name).strip().upper())
    return level if isinstance(level, int) else default


def configure_logging(level=None) -> None:
    """Send records to stderr. LOG_LEVEL overrides the INFO default."""
    chosen = level if level is not None else _parse_level(os.environ.get("LOG_LEVEL"), logging.INFO)
    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(chosen)
