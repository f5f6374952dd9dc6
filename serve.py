import logging
import sys

import uvicorn

from config import ConfigurationError, get_settings

logger = logging.getLogger("uvicorn")

def main() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s - %(message)s")
    try:
        settings = get_settings()
        import api_server
    except ConfigurationError as e:
        # 설정이 없으면 degraded 상태로 띄우지 않고 종료
        logger.error(f"Ошибка конфигурации: {e}")
        sys.exit(1)

    uvicorn.run(api_server.app, host=settings.host, port=settings.port, proxy_headers=True)

if __name__ == "__main__":
    main()
