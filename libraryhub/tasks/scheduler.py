import atexit
import os

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from libraryhub.tasks.overdue_sweep import run_overdue_sweep_job


def start_scheduler(app):
    """
    Starts the periodic overdue sweep in a background thread.
    - Disabled by SCHEDULER_ENABLED=0 and always off under TESTING.
    - Under the debug reloader only the serving child process runs it.
    """
    if app.testing or not app.config.get("SCHEDULER_ENABLED", True):
        app.logger.info("[scheduler] Disabled by configuration.")
        return None

    # Werkzeug's reloader runs the app twice; WERKZEUG_RUN_MAIN=true marks the real one
    if app.debug and os.environ.get("WERKZEUG_RUN_MAIN") != "true":
        app.logger.info("[scheduler] Debug reloader secondary process: scheduler skipped.")
        return None

    minutes = int(app.config.get("OVERDUE_SWEEP_MINUTES", 10))
    scheduler = BackgroundScheduler(timezone="UTC")
    scheduler.add_job(
        func=run_overdue_sweep_job,
        args=[app],
        trigger=IntervalTrigger(minutes=minutes),
        id="overdue_sweep_job",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=120,
    )
    scheduler.start()
    app.extensions["apscheduler"] = scheduler
    app.logger.info(f"[scheduler] Overdue sweep started (every {minutes} minutes).")

    def _shutdown():
        if scheduler.running:
            scheduler.shutdown(wait=False)

    atexit.register(_shutdown)
    return scheduler
