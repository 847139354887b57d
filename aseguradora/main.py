"""
Aseguradora main application entry point.
"""

import asyncio
import logging
from pathlib import Path
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from aseguradora.config import load_config, apply_env_overrides, Config
from aseguradora.models import init_db, create_async_db_engine, create_async_session_factory
from aseguradora.api import policies as policies_api
from aseguradora.api.errors import register_error_handlers


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.yaml"


def create_app(config: Config, engine=None) -> FastAPI:
    """Create the policy API application.

    The database engine is opened on startup and disposed on shutdown. An
    engine may be passed in to share it with the caller.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting Aseguradora API server...")

        db_engine = engine if engine is not None else create_async_db_engine(config.database)
        await init_db(db_engine)
        session_factory = create_async_session_factory(db_engine)

        policies_api.set_dependencies(session_factory)

        app.state.engine = db_engine
        app.state.session_factory = session_factory

        logger.info("Database ready")

        yield

        logger.info("Shutting down Aseguradora API server...")
        policies_api.set_dependencies(None)
        await db_engine.dispose()

    app = FastAPI(
        title="Aseguradora API",
        description="CRUD API for insurance policies",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors.allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "ok"}

    app.include_router(policies_api.router)

    return app


async def run_server(config: Config):
    """Run the API server until interrupted."""
    app = create_app(config)

    server_config = uvicorn.Config(
        app,
        host=config.server.host,
        port=config.server.port,
        log_level=config.logging.level.lower(),
    )
    server = uvicorn.Server(server_config)

    logger.info(f"API server: http://{config.server.host}:{config.server.port}")

    await server.serve()


def resolve_config(config_path: Optional[str]) -> Config:
    """Load the config file (if any) and apply environment overrides.

    An explicitly given path must exist; otherwise config.yaml is read when
    present and defaults are used when it is not.
    """
    if config_path is not None:
        config = load_config(config_path)
    elif Path(DEFAULT_CONFIG_PATH).exists():
        config = load_config(DEFAULT_CONFIG_PATH)
    else:
        config = Config()

    return apply_env_overrides(config)


def cmd_serve(args):
    """Run the API server."""
    try:
        config = resolve_config(args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}")
        print("Please create a config.yaml file or specify a different path with -c")
        return 1
    except ValueError as e:
        # Includes pydantic ValidationError for bad environment values
        print(f"Error: {e}")
        return 1

    # Setup logging
    logging.basicConfig(
        level=getattr(logging, config.logging.level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        asyncio.run(run_server(config))
    except KeyboardInterrupt:
        logger.info("Received interrupt, shutting down...")

    return 0


def main():
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Aseguradora insurance policy API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument(
        "-c", "--config",
        default=None,
        help=f"Path to configuration file (default: {DEFAULT_CONFIG_PATH} if present)",
    )

    args = parser.parse_args()

    # Default to serve if no command specified
    if args.command is None:
        args.command = "serve"
        args.config = None

    if args.command == "serve":
        return cmd_serve(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    exit(main())
