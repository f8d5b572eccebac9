"""
OKR Tracker web service entry point.

    okr-server --port 9000 --reload

Options fall back to OKR_TRACKER_HOST / OKR_TRACKER_PORT / OKR_TRACKER_RELOAD.
"""
import sys
from pathlib import Path

import click
import uvicorn

PROJECT_ROOT = Path(__file__).parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from okr.logger import setup_logging  # noqa: E402

APP_IMPORT_PATH = "web.backend.app:app"
WATCHED_DIRS = ["web", "okr"]


@click.command()
@click.option("--host", envvar="OKR_TRACKER_HOST", default="0.0.0.0", show_default=True)
@click.option("--port", envvar="OKR_TRACKER_PORT", type=int, default=8010, show_default=True)
@click.option("--reload/--no-reload", envvar="OKR_TRACKER_RELOAD", default=False, help="代码变更时自动重启")
@click.option("--log-level", default=None, help="system.log 级别 (默认取 config.LOG_LEVEL)")
def main(host: str, port: int, reload: bool, log_level):
    """启动 OKR Tracker API 服务"""
    setup_logging(log_level=log_level)
    click.echo(f"🚀 OKR Tracker API: http://{host}:{port}")

    uvicorn.run(
        APP_IMPORT_PATH,
        host=host,
        port=port,
        reload=reload,
        reload_dirs=WATCHED_DIRS if reload else None,
    )


if __name__ == "__main__":
    main()
