import logging

import click

from worker_service.cli.jobs import jobs
from worker_service.config.settings import config, find_config_file, load_config_file


@click.group()
@click.pass_context
def main(ctx):
    """Worker service CLI"""
    ctx.ensure_object(dict)


main.add_command(jobs)


@main.command()
@click.option('--config', 'config_path', help='Path to a YAML configuration file.')
@click.option('--host', default=None, help='The host to bind to.')
@click.option('--port', default=None, type=int, help='The port to bind to.')
@click.option('--cert-file', default=None, help='TLS certificate; serves plain HTTP when empty.')
@click.option('--key-file', default=None, help='TLS private key.')
def server(config_path, host, port, cert_file, key_file):
    """Run the API server."""
    import uvicorn

    from worker_service.api.server import create_app
    from worker_service.auth.users import MemoryUserRepository

    try:
        path = find_config_file(config_path)
        settings = load_config_file(path) if path else {}
    except FileNotFoundError as e:
        raise click.FileError(config_path, hint=str(e))
    except ValueError as e:
        raise click.UsageError(str(e))

    # Command line options override the file, which overrides the environment
    host = host or settings.get("host", config.host)
    port = port or settings.get("port", config.port)
    cert_file = cert_file if cert_file is not None else settings.get("cert_file", config.cert_file)
    key_file = key_file if key_file is not None else settings.get("key_file", config.key_file)
    log_level = str(settings.get("log_level", config.log_level)).upper()

    if bool(cert_file) != bool(key_file):
        raise click.UsageError("--cert-file and --key-file must be provided together.")

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if path:
        logging.getLogger(__name__).info(f"Loaded configuration from {path}")

    repository = MemoryUserRepository.from_credentials(settings.get("users", config.users))
    uvicorn.run(
        create_app(repository),
        host=host,
        port=port,
        ssl_certfile=cert_file or None,
        ssl_keyfile=key_file or None,
        log_level=log_level.lower(),
    )
