import click
from flask.cli import with_appcontext
from feedback_loop.extensions import db
from feedback_loop.models.user import User
from feedback_loop.services import watched_content


def _user_by_email(email: str) -> User:
    user = db.session.query(User).filter_by(email=email).one_or_none()
    if not user:
        raise click.ClickException("User not found")
    return user

@click.group()
def users():
    """Reviewer account management."""

@users.command("create")
@click.option("--email", required=True)
@click.option("--password", required=True)
@click.option("--name", default=None)
@with_appcontext
def users_create(email, password, name):
    if db.session.query(User).filter_by(email=email).count():
        raise click.ClickException("User already exists")

    user = User(email=email, name=name, is_active=True)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()

    click.echo(f"User created id={user.id} email={user.email}")

@click.group()
def watch():
    """Watched-content flags for reviewers."""

@watch.command("add")
@click.option("--email", required=True)
@click.option("--nid", type=int, required=True, help="Node id to watch")
@click.option("--flag-id", default=None, help="Defaults to WATCH_FLAG_ID")
@with_appcontext
def watch_add(email, nid, flag_id):
    user = _user_by_email(email)
    if watched_content.watch(user.id, nid, flag_id=flag_id):
        click.echo(f"{email} now watches node {nid}")
    else:
        click.echo(f"{email} already watches node {nid}")

@watch.command("remove")
@click.option("--email", required=True)
@click.option("--nid", type=int, required=True)
@click.option("--flag-id", default=None)
@with_appcontext
def watch_remove(email, nid, flag_id):
    user = _user_by_email(email)
    if not watched_content.unwatch(user.id, nid, flag_id=flag_id):
        raise click.ClickException(f"{email} does not watch node {nid}")
    click.echo(f"{email} no longer watches node {nid}")

@watch.command("list")
@click.option("--email", required=True)
@click.option("--desc", is_flag=True, help="Sort titles Z-A")
@with_appcontext
def watch_list(email, desc):
    user = _user_by_email(email)
    nids = watched_content.fetch_flagged_content(account=user, title_order="DESC" if desc else "ASC")
    titles = watched_content.load_node_titles(nids)
    for nid in nids:
        click.echo(f"{nid}\t{titles.get(nid, '(missing node)')}")

def register_cli(app):
    app.cli.add_command(users)
    app.cli.add_command(watch)
