"""Entry point: python -m gusteau_gateway"""

import uvicorn
from dotenv import load_dotenv

from gusteau_gateway.api.factory import create_app
from gusteau_gateway.config import load_settings
from gusteau_gateway.observability.logging import configure_logging, get_logger
from gusteau_gateway.observability.redaction import safe_log_context


def main() -> None:
    load_dotenv()
    settings = load_settings()
    configure_logging(settings.log_level)
    logger = get_logger("gusteau_gateway")

    app = create_app(settings)
    logger.info(
        "Gateway running",
        extra={"extra_fields": safe_log_context(gateway_url=settings.gateway_url)},
    )
    uvicorn.run(app, host="0.0.0.0", port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
