import secrets

import click

from ._common import ACCESS_TOKEN_SECRET_FILE, SECRETS_DIR

__all__ = ("secret_group",)


@click.group(name="secret")
def secret_group() -> None:
    """Manage application secrets."""


@secret_group.command()
@click.option(
    "--force",
    is_flag=True,
    default=False,
    help="Overwrite the secret if it already exists.",
)
def init(*, force: bool) -> None:
    """Generate the access token signing secret."""
    path = SECRETS_DIR / ACCESS_TOKEN_SECRET_FILE

    if path.exists() and not force:
        click.echo(f"Secret already exists at {path}, use --force to replace it.")
        return

    SECRETS_DIR.mkdir(parents=True, exist_ok=True)
    path.write_text(secrets.token_urlsafe(64), "utf-8")
    path.chmod(0o600)
    click.echo(f"Access token secret written to {path}.")
