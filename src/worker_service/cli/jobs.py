import click

from worker_service.config.settings import config

JOB_TEMPLATE = """Job ID: {id}
Command: {command}
Status: {status}
ExitCode: {exit_code}
Stdout: {stdout}
Stderr: {stderr}
User: {owner}"""


def format_job(job: dict) -> str:
    return JOB_TEMPLATE.format(
        id=job.get("id", ""),
        command=job.get("command", ""),
        status=job.get("status", ""),
        exit_code=job.get("exit_code", ""),
        stdout=job.get("stdout", ""),
        stderr=job.get("stderr", ""),
        owner=job.get("owner", ""),
    )


def _call(ctx, method: str, *args):
    from worker_service.client.worker_api import WorkerAPIError

    try:
        return getattr(ctx.obj["api"], method)(*args)
    except WorkerAPIError as e:
        raise click.ClickException(str(e))


@click.group()
@click.option("--url", default=config.url, show_default=True, help="Base URL of the worker service.")
@click.option("--username", "-u", default=config.username, help="Username for Basic authentication.")
@click.option("--password", "-p", default=config.password, help="Password for Basic authentication.")
@click.option("--ca-file", default=config.ca_file, help="Certificate of the server to trust.")
@click.option("--insecure", is_flag=True, help="Skip TLS certificate verification.")
@click.pass_context
def jobs(ctx, url, username, password, ca_file, insecure):
    """Start, stop and inspect jobs on a worker service."""
    from worker_service.client.worker_api import WorkerAPI

    ctx.ensure_object(dict)
    ctx.obj["api"] = WorkerAPI(
        url,
        username,
        password,
        ca_file=ca_file or None,
        verify_tls=config.verify_tls and not insecure,
    )


@jobs.command(name="start")
@click.argument("command", nargs=-1, required=True)
@click.pass_context
def start_job(ctx, command):
    """Start a job running COMMAND."""
    click.echo(format_job(_call(ctx, "start_job", " ".join(command))))


@jobs.command(name="stop")
@click.argument("job_id")
@click.pass_context
def stop_job(ctx, job_id):
    """Stop the job JOB_ID."""
    click.echo(format_job(_call(ctx, "stop_job", job_id)))


@jobs.command(name="get")
@click.argument("job_id")
@click.pass_context
def get_job(ctx, job_id):
    """Show status and output of the job JOB_ID."""
    click.echo(format_job(_call(ctx, "get_job", job_id)))


@jobs.command(name="list")
@click.pass_context
def list_jobs(ctx):
    """List your jobs."""
    for job in _call(ctx, "list_jobs"):
        click.echo(f"{job['id']} - {job['status']} - {job['command']}")
