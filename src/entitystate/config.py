"""Load options for :func:`entitystate.loader.load_entity`."""

from __future__ import annotations

import os
from typing import Any

from pydantic import BaseModel, ConfigDict

from entitystate._constants import ENV_APPEND, ENV_SILENT


def _env_bool(value: str | None, default: bool | None) -> bool | None:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


class LoadOptions(BaseModel):
    """Options controlling one ``load_entity`` call.

    Parameters
    ----------
    silent : bool or None
        Suppress the ``FETCH_REQUEST`` notification, so no fetching-in-progress
        state is reflected in the store.
    append : bool or None
        Concatenate the resolved data onto the entity's existing data instead
        of replacing it (incremental / paginated loads).

    A field left as ``None`` falls back to the corresponding default when the
    options are resolved.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", strict=True)

    silent: bool | None = None
    append: bool | None = None

    def resolve(self, defaults: LoadOptions) -> LoadOptions:
        """Return fully populated options, falling back field by field."""
        return LoadOptions(
            silent=self.silent if self.silent is not None else bool(defaults.silent),
            append=self.append if self.append is not None else bool(defaults.append),
        )

    @classmethod
    def from_env(cls, **overrides: Any) -> LoadOptions:
        """Create process-level defaults from environment variables.

        Reads ``ENTITYSTATE_SILENT`` and ``ENTITYSTATE_APPEND``.  Explicit
        keyword arguments override environment values, and anything still
        unset falls back to :data:`DEFAULT_LOAD_OPTIONS`.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {
            "silent": _env_bool(env.get(ENV_SILENT), None),
            "append": _env_bool(env.get(ENV_APPEND), None),
        }
        config_kwargs.update(overrides)
        return cls(**config_kwargs).resolve(DEFAULT_LOAD_OPTIONS)


DEFAULT_LOAD_OPTIONS = LoadOptions(silent=False, append=False)
