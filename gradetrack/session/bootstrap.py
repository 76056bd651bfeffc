"""Bootstrap helpers for gradebook sessions."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict

from dotenv import load_dotenv

from gradetrack.core.config import DEFAULT_CONFIG_PATH, AppConfig, load_app_config
from gradetrack.core.transactions import MutationController
from gradetrack.core.validation import CourseValidator, ValidatorMode
from gradetrack.storage.persistence import GradebookRepository
from gradetrack.storage.store import CourseStore

from .context import GradebookSession

ENV_CONFIG = "GRADETRACK_CONFIG"
ENV_DATA = "GRADETRACK_DATA"
ENV_RULES = "GRADETRACK_RULES"
LOGGER = logging.getLogger(__name__)


def _capture_env(keys: tuple[str, ...]) -> Dict[str, str]:
    snapshot: Dict[str, str] = {}
    for key in keys:
        value = os.getenv(key)
        if value is not None:
            snapshot[key] = value
    return snapshot


def _resolve_path(value: str | Path, base: Path) -> Path:
    candidate = Path(value).expanduser()
    if candidate.is_absolute():
        return candidate.resolve()
    return (base / candidate).resolve()


def bootstrap_session(
    config_path: Path | None = None,
    *,
    base_dir: Path | None = None,
    data_path: Path | None = None,
    rules_path: Path | None = None,
) -> GradebookSession:
    """
    Load configuration and build an empty gradebook session.

    Parameters
    ----------
    config_path:
        Config YAML. Defaults to ``$GRADETRACK_CONFIG`` or
        ``config/gradetrack.yaml`` under ``base_dir`` when that file exists.
    base_dir:
        Directory that relative paths resolve against. Defaults to ``Path.cwd()``.
    data_path:
        Overrides ``storage.data_path`` (and ``$GRADETRACK_DATA``).
    rules_path:
        Overrides ``rules.rules_path`` (and ``$GRADETRACK_RULES``).

    The returned session holds an empty store; call ``load()`` to read the
    gradebook.
    """

    base_dir = (base_dir or Path.cwd()).resolve()
    load_dotenv(base_dir / ".env")

    env_config = os.getenv(ENV_CONFIG)
    if config_path is None and env_config:
        config_path = _resolve_path(env_config, base_dir)
    if config_path is None:
        default_config = base_dir / DEFAULT_CONFIG_PATH
        config_path = default_config if default_config.exists() else None

    if config_path is not None:
        config = load_app_config(_resolve_path(config_path, base_dir), base_dir=base_dir)
    else:
        config = AppConfig().resolved(base_dir)

    data_override = data_path or os.getenv(ENV_DATA)
    rules_override = rules_path or os.getenv(ENV_RULES)
    if data_override:
        config = config.model_copy(
            update={"storage": config.storage.model_copy(update={"data_path": _resolve_path(data_override, base_dir)})}
        )
    if rules_override:
        config = config.model_copy(
            update={"rules": config.rules.model_copy(update={"rules_path": _resolve_path(rules_override, base_dir)})}
        )

    validator = CourseValidator.from_rules_file(config.rules.rules_path)
    notices = []
    if validator.mode is ValidatorMode.ACCEPT_ALL:
        notices.append(f"Course rules are not enforced: {validator.fallback_reason}")

    store = CourseStore()
    session = GradebookSession(
        config=config,
        store=store,
        validator=validator,
        controller=MutationController(store, validator),
        repository=GradebookRepository(config.storage.data_path),
        env=_capture_env((ENV_CONFIG, ENV_DATA, ENV_RULES)),
        startup_notices=notices,
    )
    LOGGER.debug(
        "Session ready: data=%s rules=%s validator=%s",
        config.storage.data_path,
        config.rules.rules_path,
        validator.describe(),
    )
    return session
