from libraryhub.services.ledger_service import LedgerService


def run_overdue_sweep_job(app):
    """
    Marks outstanding loans past their due date as overdue.
    Only borrowed -> overdue transitions; available copies are never touched.
    """
    with app.app_context():
        try:
            changed = LedgerService.sweep_overdue()
            app.logger.info(f"[overdue_sweep] marked_overdue={changed}")
            return changed
        except Exception as e:
            app.logger.exception(f"[overdue_sweep] failed: {e}")
            return 0
