# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""StructlogAdapter — renders stashkit's structlog events through the ``stashkit`` logger."""

from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

import structlog

from stashkit.core.config import Config
from stashkit.logging.port import LoggingPort

PACKAGE_LOGGER = "stashkit"
_HANDLER_NAME = "stashkit-structlog"
_FORMATS = ("console", "json")


class StructlogAdapter:
    """Configures structlog and the stdlib ``stashkit`` logger tree from ``stashkit.logging.*``.

    A single handler is attached to the ``stashkit`` logger and propagation
    to the root logger is switched off, so the host application's own root
    handlers are left alone. Every key under ``stashkit.logging.level`` is a
    logger name::

        stashkit:
          logging:
            format: json
            level:
              stashkit: WARNING
              stashkit.store.engine: DEBUG

    ``structlog.configure`` is process-wide; calling :meth:`configure` again
    replaces the previous handler instead of stacking another one.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream
        self._format = "console"
        self._levels: dict[str, str] = {}

    @property
    def format(self) -> str:
        return self._format

    @property
    def levels(self) -> dict[str, str]:
        return dict(self._levels)

    def configure(self, config: Config) -> None:
        fmt = str(config.get("stashkit.logging.format", "console")).lower()
        if fmt not in _FORMATS:
            raise ValueError(f"Unknown log format {fmt!r}; expected one of {', '.join(_FORMATS)}")
        self._format = fmt
        self._levels = {
            str(name): str(level).upper() for name, level in config.get_section("stashkit.logging.level").items()
        }
        self._levels.setdefault(PACKAGE_LOGGER, "INFO")

        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.stdlib.filter_by_level,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=False,
        )
        self._install_handler()
        for name, level in self._levels.items():
            self.set_level(name, level)

    def get_logger(self, name: str) -> Any:
        return structlog.get_logger(name)

    def set_level(self, name: str, level: str) -> None:
        """Set the stdlib level of one logger; unknown level names mean INFO."""
        log_level = getattr(logging, level.upper(), logging.INFO)
        logging.getLogger(name).setLevel(log_level)

    def reset(self) -> None:
        """Detach the stashkit handler, restore propagation and clear levels across the ``stashkit`` tree."""
        self._remove_handler()
        logging.getLogger(PACKAGE_LOGGER).propagate = True
        for name, existing in list(logging.root.manager.loggerDict.items()):
            in_tree = name == PACKAGE_LOGGER or name.startswith(PACKAGE_LOGGER + ".")
            if in_tree and isinstance(existing, logging.Logger):
                existing.setLevel(logging.NOTSET)
        self._levels = {}
        structlog.reset_defaults()

    def _install_handler(self) -> None:
        if self._format == "json":
            renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
        else:
            renderer = structlog.dev.ConsoleRenderer()

        handler = logging.StreamHandler(self._stream or sys.stdout)
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
            )
        )

        self._remove_handler()
        package_logger = logging.getLogger(PACKAGE_LOGGER)
        package_logger.addHandler(handler)
        package_logger.propagate = False

    @staticmethod
    def _remove_handler() -> None:
        package_logger = logging.getLogger(PACKAGE_LOGGER)
        for handler in list(package_logger.handlers):
            if handler.get_name() == _HANDLER_NAME:
                package_logger.removeHandler(handler)
                handler.close()


def configure_logging(config: Config, port: LoggingPort | None = None) -> LoggingPort:
    """Apply ``stashkit.logging.*`` through *port* (a :class:`StructlogAdapter` by default).

    Skipped when ``stashkit.logging.enabled`` is false, leaving logging to
    the host application. Returns the port either way.
    """
    port = port if port is not None else StructlogAdapter()
    if str(config.get("stashkit.logging.enabled", True)).lower() in ("false", "0", "no"):
        return port
    port.configure(config)
    return port
