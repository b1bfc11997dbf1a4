import uvicorn
from dotenv import load_dotenv

from ideate_agent.core.config import load_settings
from ideate_agent.core.logging import configure_logging


def main():
    load_dotenv()
    cfg = load_settings()
    configure_logging(cfg.get("logging", {}).get("level", "INFO"))
    # support nested override under app.api or top-level
    api_cfg = cfg.get("app", {}).get("api", {})
    host = api_cfg.get("host", cfg.get("host", "127.0.0.1"))
    port = api_cfg.get("port", cfg.get("port", 8080))
    uvicorn.run("ideate_agent.app.http.api:create_app", factory=True, host=host, port=port, reload=False)


if __name__ == "__main__":
    main()
