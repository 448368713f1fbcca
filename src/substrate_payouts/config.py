"""Configuration loading: TOML file + environment variables + input files."""

from __future__ import annotations

import json
import os
from pathlib import Path

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

from substrate_payouts.errors import ConfigError
from substrate_payouts.models.config import LogConfig, PayoutsConfig, SubmissionPolicy

_TRUTHY = {"1", "true", "yes", "on"}


def _policy(value: str) -> SubmissionPolicy:
    try:
        return SubmissionPolicy(value.strip().lower().replace("-", "_"))
    except ValueError as exc:
        choices = ", ".join(p.value for p in SubmissionPolicy)
        raise ConfigError(f"Unknown failure policy {value!r} (expected {choices})") from exc


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "PAYOUTS_",
) -> PayoutsConfig:
    """Load configuration from a TOML file and env vars.

    Priority (highest wins):
        1. Environment variables (PAYOUTS_WS, PAYOUTS_SURI_FILE, etc.)
        2. TOML config file
        3. Defaults from PayoutsConfig
    Command-line flags are applied on top by the CLI.
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if not p.exists():
            raise ConfigError(f"Config file {p} does not exist")
        try:
            with open(p, "rb") as f:
                raw = tomllib.load(f)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Config file {p} is not valid TOML: {exc}") from exc

    cfg = PayoutsConfig()

    # ── Chain section ──────────────────────────────────────
    chain = raw.get("chain", {})
    if v := chain.get("ws"):
        cfg.ws = str(v)
    if (v := chain.get("ss58_format")) is not None:
        cfg.ss58_format = int(v)
    if v := chain.get("call_timeout"):
        cfg.call_timeout = float(v)

    # ── Payouts section ────────────────────────────────────
    payouts = raw.get("payouts", {})
    if v := payouts.get("stashes"):
        cfg.stashes = [str(s) for s in v]
    if v := payouts.get("stashes_file"):
        cfg.stashes_file = str(v)
    if v := payouts.get("suri_file"):
        cfg.suri_file = str(v)
    if (v := payouts.get("era_depth")) is not None:
        cfg.era_depth = int(v)
    if v := payouts.get("on_failure"):
        cfg.on_failure = _policy(str(v))
    if v := payouts.get("lookup_concurrency"):
        cfg.lookup_concurrency = int(v)
    if (v := payouts.get("portion")) is not None:
        cfg.portion = float(v)

    # ── Logging section ────────────────────────────────────
    logging_raw = raw.get("logging", {})
    cfg.log = LogConfig(
        level=str(logging_raw.get("level", "info")),
        verbose=bool(logging_raw.get("verbose", False)),
    )

    # ── Environment variable overrides ─────────────────────
    if ws := os.environ.get(f"{env_prefix}WS"):
        cfg.ws = ws
    if suri_file := os.environ.get(f"{env_prefix}SURI_FILE"):
        cfg.suri_file = suri_file
    if stashes_file := os.environ.get(f"{env_prefix}STASHES_FILE"):
        cfg.stashes_file = stashes_file
    if depth := os.environ.get(f"{env_prefix}ERA_DEPTH"):
        cfg.era_depth = int(depth)
    if policy := os.environ.get(f"{env_prefix}ON_FAILURE"):
        cfg.on_failure = _policy(policy)
    if debug := os.environ.get(f"{env_prefix}DEBUG"):
        cfg.log.verbose = debug.strip().lower() in _TRUTHY

    if cfg.era_depth < 0:
        raise ConfigError("era_depth must not be negative")
    if not 0 <= cfg.portion <= 1:
        raise ConfigError("portion must be between 0 and 1")

    return cfg


def read_suri(suri_file: str | Path) -> str:
    """Return the first line of the secret file."""
    p = Path(suri_file).expanduser()
    try:
        data = p.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Suri file could not be opened: {exc}") from exc

    lines = data.splitlines()
    suri = lines[0].strip() if lines else ""
    if not suri:
        raise ConfigError("No suri could be read in from file.")
    return suri


def parse_stashes(
    stashes: list[str] | None = None,
    stashes_file: str | Path | None = None,
) -> list[str]:
    """Stash addresses from a JSON array file, or the inline list."""
    if stashes_file:
        p = Path(stashes_file).expanduser()
        try:
            with open(p) as f:
                data = json.load(f)
        except OSError as exc:
            raise ConfigError(f"Stashes file could not be opened: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Stashes file is not valid JSON: {exc}") from exc

        if not isinstance(data, list):
            raise ConfigError("The stash addresses must be in a JSON file as an array.")
        parsed = [str(s).strip() for s in data]
    elif stashes:
        parsed = [str(s).strip() for s in stashes]
    else:
        raise ConfigError(
            "You must provide a list of stashes with the --stashes or --stashes-file option."
        )

    parsed = [s for s in parsed if s]
    if not parsed:
        raise ConfigError("No stash addresses were provided.")
    return parsed
