"""Run the portal API under uvicorn, configured from the environment."""

import logging
import os

import uvicorn

_TRUTHY = {"1", "true", "yes", "on"}


def _uvicorn_settings() -> dict:
    settings = {
        "host": os.getenv("HOST", "0.0.0.0"),
        "port": int(os.getenv("PORT", "8000")),
        "reload": os.getenv("RELOAD", "").strip().lower() in _TRUTHY,
        "log_level": os.getenv("LOG_LEVEL", "info").lower(),
        "proxy_headers": True,
        "forwarded_allow_ips": os.getenv("FORWARDED_ALLOW_IPS", "*"),
    }
    # TLS is only enabled when both halves of the key pair are configured.
    cert, key = os.getenv("SSL_CERTFILE"), os.getenv("SSL_KEYFILE")
    if cert and key:
        settings.update(ssl_certfile=cert, ssl_keyfile=key)
    return settings


def main() -> None:
    settings = _uvicorn_settings()
    logging.basicConfig(
        level=settings["log_level"].upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("isodb.main:app", **settings)


if __name__ == "__main__":
    main()
