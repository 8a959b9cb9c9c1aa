import asyncio
import sys

from dotenv import load_dotenv
from loguru import logger

from traced_chatbot.app_config import load_json_config, parse_app_config, resolve_runtime_env
from traced_chatbot.bootstrap import bootstrap_runtime


async def main() -> int:
    load_dotenv()

    app = parse_app_config(load_json_config())
    env = resolve_runtime_env(app.provider_name)

    missing = env.missing()
    if missing:
        logger.error(f"Missing required environment variable(s): {', '.join(missing)}")
        return 1

    runtime = await bootstrap_runtime(app, env)
    logger.info(
        f"Starting session {runtime.session.id} "
        f"(provider={app.provider_name}, model={app.model}, tools={len(runtime.registry)})"
    )

    runtime.loop.print_banner()
    try:
        await runtime.loop.run()
    finally:
        await runtime.emitter.close()
    return 0


def run() -> None:
    try:
        code = asyncio.run(main())
    except KeyboardInterrupt:
        # Ctrl-C during a turn; the prompt itself handles it in SessionLoop.run
        code = 0
    sys.exit(code)


if __name__ == "__main__":
    run()
