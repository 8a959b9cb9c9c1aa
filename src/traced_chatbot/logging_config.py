import sys
from pathlib import Path
from typing import Any, Callable

from loguru import logger

# Records logged outside SessionLoop.run carry this placeholder session id.
NO_SESSION = "-"

CONSOLE_FORMAT = (
    "<level>{level:<8}</level> | <magenta>{extra[session_id]}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | session={extra[session_id]} | "
    "{name}:{function}:{line} - {message}"
)


def _add_console(level: str, *, stream: str = "stderr") -> str:
    target = sys.stdout if stream == "stdout" else sys.stderr
    logger.add(target, level=level, format=CONSOLE_FORMAT)
    return f"console ({stream}, {level})"


def _add_file(
    level: str,
    *,
    path: str = "chatbot.log",
    rotation: str = "5 MB",
    retention: int = 3,
) -> str:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    logger.add(path, level=level, format=FILE_FORMAT, rotation=rotation, retention=retention)
    return f"file ({path}, {level})"


_SINK_BUILDERS: dict[str, Callable[..., str]] = {
    "console": _add_console,
    "file": _add_file,
}

# Console only shows warnings so log lines don't interleave with the chat prompt.
DEFAULT_CONSUMERS: list[dict[str, Any]] = [
    {"type": "console", "level": "WARNING"},
    {"type": "file", "path": "chatbot.log"},
]


def setup_logging(
    level: str = "INFO",
    consumers: list[dict[str, Any]] | None = None,
) -> list[str]:
    """Replace loguru's sinks with the configured ones.

    Every format includes the conversation id; SessionLoop binds it with
    ``logger.contextualize(session_id=...)``. Returns one description per
    sink that was added, for the startup banner.
    """
    logger.remove()
    logger.configure(extra={"session_id": NO_SESSION})

    descriptions: list[str] = []
    for entry in DEFAULT_CONSUMERS if consumers is None else consumers:
        sink_type = entry.get("type", "")
        build = _SINK_BUILDERS.get(sink_type)
        if build is None:
            logger.warning(f"Unknown log consumer type: {sink_type!r}")
            continue
        options = {k: v for k, v in entry.items() if k not in ("type", "level")}
        descriptions.append(build(entry.get("level", level), **options))
    return descriptions
