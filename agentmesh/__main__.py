"""Run the API server: ``python -m agentmesh``."""

import uvicorn

from .config import API_HOST, API_PORT


def main() -> None:
    uvicorn.run("agentmesh.main:app", host=API_HOST, port=API_PORT)


if __name__ == "__main__":
    main()
