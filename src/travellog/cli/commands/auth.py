"""Account commands."""

import click

from travellog.cli.runtime import run_async, run_with_controller
from travellog.domain.auth import AuthService
from travellog.domain.entities import Authenticated

DEFAULT_RESET_REDIRECT = "http://localhost:5173/reset-password"


@click.group()
def auth_group():
    """Sign up, sign in and manage your password."""
    pass


@auth_group.command("signup")
@click.argument("email")
@click.password_option()
@click.pass_context
def sign_up(ctx, email: str, password: str):
    """Create an account and sign in."""

    async def _sign_up(controller):
        result = await AuthService(controller.auth_provider).sign_up(email, password)
        return result, len(controller.places)

    result, count = run_with_controller(ctx, _sign_up)
    click.echo(f"Registered {result.identity.email}")
    if result.session_present:
        click.echo(f"Signed in; your account has {count} places")
    else:
        click.echo("Check your e-mail to confirm the account, then sign in")


@auth_group.command("signin")
@click.argument("email")
@click.option("--password", prompt=True, hide_input=True)
@click.pass_context
def sign_in(ctx, email: str, password: str):
    """Sign in; your account's places replace the local ones until sign-out."""

    async def _sign_in(controller):
        identity = await AuthService(controller.auth_provider).sign_in(email, password)
        return identity, len(controller.places)

    identity, count = run_with_controller(ctx, _sign_in)
    click.echo(f"Signed in as {identity.email}; {count} places loaded")


@auth_group.command("signout")
@click.pass_context
def sign_out(ctx):
    """Sign out; local places are shown again."""

    async def _sign_out(controller):
        await AuthService(controller.auth_provider).sign_out()
        return len(controller.places)

    count = run_with_controller(ctx, _sign_out)
    click.echo(f"Signed out; {count} local places loaded")


@auth_group.command("whoami")
@click.pass_context
def who_am_i(ctx):
    """Show the signed in account."""

    async def _session(controller):
        identity = await controller.auth_provider.get_current_identity()
        return controller.session, identity

    session, identity = run_with_controller(ctx, _session)
    if isinstance(session, Authenticated) and identity is not None:
        click.echo(f"Signed in as {identity.email}")
    else:
        click.echo("Not signed in; places are stored locally")


@auth_group.command("forgot-password")
@click.argument("email")
@click.option(
    "--redirect",
    default=DEFAULT_RESET_REDIRECT,
    show_default=True,
    help="Page the reset link lands on",
)
@click.pass_context
def forgot_password(ctx, email: str, redirect: str):
    """Send a password reset link.

    The built-in local backend writes the link to the log instead of sending
    an e-mail; run with --verbose to see it.
    """
    service = AuthService(ctx.obj["auth"])
    run_async(ctx, service.request_password_reset(email, redirect))
    click.echo("If the address is registered, a password reset link has been sent.")


@auth_group.command("reset-password")
@click.argument("link")
@click.password_option("--password", confirmation_prompt=True)
@click.pass_context
def reset_password(ctx, link: str, password: str):
    """Set a new password using the link from the reset e-mail."""
    service = AuthService(ctx.obj["auth"])

    async def _reset():
        await service.open_reset_link(link)
        await service.set_new_password(password)

    run_async(ctx, _reset())
    click.echo("Password updated.")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(auth_group, name="auth")
