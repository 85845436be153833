import re
import sys
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from loguru import logger

# Bearer tokens and API keys must never reach a sink.
_SECRET_PATTERNS = [
    re.compile(r"(Bearer\s+)[A-Za-z0-9._~+/=-]+"),
    re.compile(r"((?:nvm_api_key|api_key|access_token|accessToken)['\"]?\s*[:=]\s*['\"]?)[^'\"\s,}]+", re.IGNORECASE),
]

_CONSOLE_FORMAT = "<level>{level:<8}</level> | <cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {thread.name} | {name}:{function}:{line} - {message}"


def redact_secrets(text: str) -> str:
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(r"\1***", text)
    return text


def _redacting_patcher(record: dict) -> None:
    record["message"] = redact_secrets(record["message"])


@runtime_checkable
class LogConsumer(Protocol):
    def register(self, level: str) -> None: ...
    def describe(self, level: str) -> str: ...


class ConsoleLogConsumer:
    def __init__(self, stream: str = "stderr"):
        if stream not in ("stderr", "stdout"):
            raise ValueError(f"Console stream must be 'stderr' or 'stdout', got {stream!r}")
        self._stream = stream

    def register(self, level: str) -> None:
        sink = sys.stdout if self._stream == "stdout" else sys.stderr
        logger.add(sink, level=level, format=_CONSOLE_FORMAT)

    def describe(self, level: str) -> str:
        return f"console ({self._stream}, {level})"


class FileLogConsumer:
    """Rotating file sink. Ledger and chain calls log from executor threads, so the thread name is recorded."""

    def __init__(
        self,
        path: str = "credit-gate.log",
        rotation: str = "10 MB",
        retention: int = 3,
        serialize: bool = False,
    ):
        self._path = Path(path)
        self._rotation = rotation
        self._retention = retention
        self._serialize = serialize

    def register(self, level: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(self._path),
            level=level,
            format=_FILE_FORMAT,
            rotation=self._rotation,
            retention=self._retention,
            serialize=self._serialize,
        )

    def describe(self, level: str) -> str:
        kind = "json file" if self._serialize else "file"
        return f"{kind} ({self._path}, {level})"


_CONSUMER_TYPES: dict[str, type] = {
    "console": ConsoleLogConsumer,
    "file": FileLogConsumer,
}


def _make_consumer(config: dict[str, Any]) -> LogConsumer | None:
    cls = _CONSUMER_TYPES.get(config.get("type", ""))
    if cls is None:
        return None
    return cls(**{key: value for key, value in config.items() if key not in ("type", "level")})


def setup_logging(level: str = "INFO", consumers: list[dict[str, Any]] | None = None) -> list[str]:
    """Replace all sinks with the configured consumers, redacting secrets from every record.

    Without ``consumers`` logs go to stderr and ``credit-gate.log``. Returns
    one description per registered sink; unknown consumer types are skipped.
    """
    logger.remove()
    logger.configure(patcher=_redacting_patcher)

    if consumers is None:
        consumers = [{"type": "console"}, {"type": "file"}]

    descriptions: list[str] = []
    skipped: list[str] = []
    for config in consumers:
        consumer = _make_consumer(config)
        if consumer is None:
            skipped.append(repr(config.get("type")))
            continue
        sink_level = config.get("level", level)
        consumer.register(sink_level)
        descriptions.append(consumer.describe(sink_level))

    if skipped:
        logger.warning(f"Unknown log consumer type(s) skipped: {', '.join(skipped)}")
    return descriptions
