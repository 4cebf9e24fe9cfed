import click

from esg_manager import db


def register_commands(app):
    @app.cli.command("init-db")
    def init_db():
        """Create tables and seed the key issue catalogue."""
        from esg_manager.key_issues import seed_key_issues

        db.create_all()
        added = seed_key_issues()
        click.echo(f"Database initialized. {added} key issue(s) added.")

    @app.cli.command("seed-key-issues")
    @click.option("--file", "path", type=click.Path(exists=True, dir_okay=False),
                  help="JSON list of key issues to load instead of the built-in catalogue.")
    def seed_key_issues_command(path):
        """Add key issues that are not in the database yet."""
        from esg_manager.key_issues import load_catalogue, seed_key_issues

        catalogue = load_catalogue(path) if path else None
        added = seed_key_issues(catalogue)
        click.echo(f"{added} key issue(s) added.")

    @app.cli.command("evaluate-pending")
    def evaluate_pending():
        """Re-run the mock evaluation for projects stuck in PROCESSING."""
        from esg_manager.evaluation import evaluate_stuck_projects

        count = evaluate_stuck_projects()
        click.echo(f"Evaluated {count} project(s).")
