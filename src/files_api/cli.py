# cli.py
import logging

import click

from files_api.dependencies import create_file_store
from files_api.errors import StorageUnavailable
from files_api.settings import get_settings

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


@click.group()
def cli():
    """CLI commands for the Files API"""
    configure_logging(get_settings().log_level)


@cli.command()
@click.option("--host", default=None, help="Interface to bind (defaults to HOST)")
@click.option("--port", default=None, type=int, help="Port to listen on (defaults to PORT / NODE_PORT)")
@click.option("--reload", is_flag=True, help="Restart on code changes")
def serve(host, port, reload):
    """Run the API with uvicorn"""
    import uvicorn

    settings = get_settings()
    host = host or settings.host
    port = port or settings.port
    logger.info(f"Listening on {host}:{port}")
    uvicorn.run(
        "files_api.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@cli.command()
def show_config():
    """Show current configuration"""
    settings = get_settings()

    print("Current Configuration:")
    print(f"  MongoDB URI: {settings.mongodb_uri}")
    print(f"  MongoDB Database: {settings.mongodb_database or '(from URI)'}")
    print(f"  MongoDB Collection: {settings.mongodb_collection}")
    print(f"  MongoDB Timeout: {settings.mongodb_timeout_ms}ms")
    print(f"  Naming Policy: {settings.naming_policy.value}")
    print(f"  Locator: {settings.locator.value}")
    print(f"  Content-Disposition: {settings.content_disposition.value}")
    print(f"  Upload Field: {settings.upload_field_name}")
    print(f"  Listen: {settings.host}:{settings.port}")


@cli.command()
def init_db():
    """Create the indexes required by the configured naming policy"""
    settings = get_settings()
    file_store = create_file_store(settings)
    try:
        file_store.init_collections()
    except StorageUnavailable as e:
        raise click.ClickException(f"Could not reach MongoDB at {settings.mongodb_uri}: {e.__cause__}")
    except ValueError as e:
        raise click.ClickException(str(e))
    finally:
        file_store.close()
    print(f"✅ Indexes ready on collection '{settings.mongodb_collection}'")


if __name__ == "__main__":
    cli()
