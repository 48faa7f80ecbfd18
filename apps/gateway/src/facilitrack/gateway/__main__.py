"""gateway 启动入口 -- python -m facilitrack.gateway

FACILITRACK_HOST / FACILITRACK_PORT 指定监听地址，默认 127.0.0.1:8000。
"""

import os

import uvicorn

APP_PATH = "facilitrack.gateway.main:app"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000


def get_bind_address() -> tuple[str, int]:
    host = os.environ.get("FACILITRACK_HOST", DEFAULT_HOST)
    raw_port = os.environ.get("FACILITRACK_PORT", str(DEFAULT_PORT))
    try:
        port = int(raw_port)
    except ValueError:
        print(f"无效端口 {raw_port!r}，使用默认 {DEFAULT_PORT}")
        port = DEFAULT_PORT
    return host, port


def main() -> None:
    host, port = get_bind_address()
    # 日志由应用自身的 structlog 配置接管
    uvicorn.run(APP_PATH, host=host, port=port, log_config=None)


if __name__ == "__main__":
    main()
