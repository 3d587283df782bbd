"""Configuration of the on-disk store."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field


def _discarding_logger() -> logging.Logger:
    # built outside the logging manager so it has no parent and never propagates
    logger = logging.Logger("flowstore.discard")
    logger.addHandler(logging.NullHandler())
    logger.disabled = True
    return logger


@dataclass(frozen=True)
class Config:
    """Settings for a disk store: where its database lives and where its logs go."""

    logger: logging.Logger = field(default_factory=_discarding_logger)
    db_path: str = "./flowdb"
    truncate: bool = False

    def replace(self, **kwargs: object) -> "Config":
        """Return a copy with the given settings changed."""
        return dataclasses.replace(self, **kwargs)