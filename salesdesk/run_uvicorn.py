import os

import uvicorn

from salesdesk.logging_config import configure_logging


def main() -> None:
    """
    Uvicorn launcher.
    - Reads HOST/PORT from env, defaults to 0.0.0.0:8000.
    - Logging configured before Uvicorn starts.
    """

    # Must run before uvicorn.run() so workers inherit logging.
    configure_logging()

    port = int(os.environ.get("PORT", 8000))

    uvicorn.run(
        "salesdesk.main:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=port,
        reload=False,
        log_config=None,  # keep our logging config
        use_colors=False,
    )


if __name__ == "__main__":
    main()
