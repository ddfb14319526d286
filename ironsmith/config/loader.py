"""YAML/JSON config loading with env var expansion."""

import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import IronsmithConfig

# Searched in the working directory, in order, when no path is given.
CONFIG_FILENAMES = ("ironsmith.yaml", "ironsmith.yml", "ironsmith.json")


class ConfigNotFoundError(FileNotFoundError):
    """No config file was passed and none exists in the working directory."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path
        if path is not None:
            msg = f"could not find configuration file: {path}"
        else:
            msg = f"could not find a {CONFIG_FILENAMES[0]} configuration file."
        super().__init__(msg)


def find_config(cli_path: str | None = None, cwd: Path | None = None) -> Path:
    """Resolve the config file: explicit path > ironsmith.yaml/.yml/.json."""
    base = Path(cwd) if cwd is not None else Path.cwd()
    if cli_path:
        path = Path(cli_path)
        if not path.is_absolute():
            path = base / path
        if not path.is_file():
            raise ConfigNotFoundError(path)
        return path

    for name in CONFIG_FILENAMES:
        candidate = base / name
        if candidate.is_file():
            return candidate
    raise ConfigNotFoundError()


def load_config(cli_path: str | None = None, cwd: Path | None = None) -> tuple[IronsmithConfig, Path]:
    """Load and validate the config. Returns the config and the file it came from.

    JSON is a subset of YAML, so both formats go through ``yaml.safe_load``.
    """
    path = find_config(cli_path, cwd)
    try:
        with open(path) as f:
            raw = yaml.safe_load(f)
        raw = _expand_env_vars(raw or {})
        if not isinstance(raw, dict):
            raise ValueError(f"Invalid config in {path}: expected a mapping")
        return IronsmithConfig(**raw), path.resolve()
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    except ValidationError as e:
        raise ValueError(f"Invalid config in {path}: {_summarize(e)}") from e


def _summarize(error: ValidationError) -> str:
    """One line per ValidationError, e.g. ``concurrency: Input should be greater than 0``."""
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc']) or 'config'}: {err['msg']}"
        for err in error.errors()
    )


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} references in strings."""
    if isinstance(obj, str):
        return re.sub(r"\$\{(\w+)\}", lambda m: os.environ.get(m.group(1), ""), obj)
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


# Default YAML template for `ironsmith config init`
DEFAULT_CONFIG_TEMPLATE = """\
# ironsmith.yaml

source: "src"
destination: "build"
clean: true                    # remove the destination before writing
frontmatter: true              # parse leading YAML blocks into file metadata
# concurrency: 16              # max simultaneous file reads/writes

metadata:
  sitename: "My Site"

ignore:
  - ".DS_Store"
  # - "drafts"

# Plugins run in the order listed. Names are entry points, importable
# modules ("pkg.module:factory") or local files ("./plugins/thing.py").
plugins: []
#  - ./plugins/uppercase.py:
#      marker: "!"

# Logging
log_level: "info"              # debug | info | warn | error
"""
