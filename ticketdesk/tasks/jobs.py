from ticketdesk.tasks.celery_app import celery
from ticketdesk.tasks import worker_jobs


@celery.task(name="ticketdesk.tasks.jobs.process_email_queue")
def process_email_queue(limit: int = 50):
    return worker_jobs.process_email_queue(limit=limit)
