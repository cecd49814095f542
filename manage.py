"""Management CLI commands."""

import json
import sys

from flask import Flask
from resumegen import create_app, db, get_render_pipeline


def init_db(app: Flask) -> None:
    """Create the render job tables."""
    with app.app_context():
        db.create_all()
        app.logger.info("Database initialized successfully")


def drop_db(app: Flask, confirm: bool = False) -> None:
    """Drop all database tables."""
    if not confirm:
        response = input("Are you sure you want to drop all tables? [y/N]: ")
        if response.lower() != "y":
            print("Operation cancelled")
            return

    with app.app_context():
        db.drop_all()
        app.logger.info("Database dropped successfully")


def run_worker(app: Flask, count: int = None) -> None:
    """Run the render dispatcher and retention sweeper until SIGINT/SIGTERM."""
    from resumegen.exceptions import EngineUnavailableError
    from resumegen.services.render_pipeline import build_render_pipeline

    with app.app_context():
        pipeline = get_render_pipeline()
        if count:
            pipeline = build_render_pipeline(
                pipeline.queue.store.engine,
                app_settings=pipeline.settings,
                artifact_root=str(pipeline.artifact_store.root),
                worker_count=count,
            )

    try:
        pipeline.engine.check_available()
    except EngineUnavailableError as e:
        print(f"❌ {e.reason}")
        sys.exit(1)

    pipeline.settings.display_config()

    sweeper = pipeline.sweeper()
    sweeper.start()
    try:
        pipeline.dispatcher().run_forever()
    finally:
        sweeper.stop()


def sweep(app: Flask) -> None:
    """Run one reclaim + retention pass."""
    with app.app_context():
        report = get_render_pipeline().sweeper().run_once()
    print(json.dumps(report.to_dict(), indent=2))


def queue_status(app: Flask) -> None:
    """Print the number of jobs in each state."""
    with app.app_context():
        counts = get_render_pipeline().queue.counts()
    print(json.dumps(counts, indent=2))


if __name__ == "__main__":
    app = create_app()

    commands = {
        "init": lambda: init_db(app),
        "drop": lambda: drop_db(app),
        "worker": lambda: run_worker(app, int(sys.argv[2]) if len(sys.argv) > 2 else None),
        "sweep": lambda: sweep(app),
        "status": lambda: queue_status(app),
    }

    if len(sys.argv) < 2:
        print("Usage: python manage.py <command>")
        print("\nCommands:")
        print("  init                - Create render job tables")
        print("  drop                - Drop all tables")
        print("\nRender Pipeline Commands:")
        print("  worker              - Run render workers and the retention sweeper")
        print("                        Usage: worker [count] (default: RENDER_WORKER_COUNT)")
        print("  sweep               - Reclaim lost jobs and delete expired ones once")
        print("  status              - Show job counts per state")
        sys.exit(1)

    command = sys.argv[1]
    if command not in commands:
        print(f"Unknown command: {command}")
        sys.exit(1)

    commands[command]()
