import threading
import time
import schedule

from infrastructure.logging import get_module_logger
from jobs.meeting_reminders import send_meeting_reminders

logger = get_module_logger()


def safe_run(job):
    def wrapper(*args, **kwargs):
        try:
            job(*args, **kwargs)
        except Exception as e:  # pylint: disable=broad-except
            logger.error(
                "safe_run_error",
                error=str(e),
                module=job.__module__,
                function=job.__name__,
                arguments=sorted(kwargs),
                job_args=args,
            )

    return wrapper


def init(service, meeting_store, settings):
    logger.info("scheduled_tasks_initialized")

    interval = settings.notifications.reminder_interval_minutes
    schedule.every(interval).minutes.do(
        safe_run(send_meeting_reminders),
        service=service,
        store=meeting_store,
        settings=settings,
    )
    schedule.every(5).minutes.do(safe_run(scheduler_heartbeat))
    schedule.every(5).minutes.do(safe_run(integration_healthchecks), service=service)


def scheduler_heartbeat():
    logger.info(
        "running_scheduler_heartbeat", module="scheduled_tasks", time=time.ctime()
    )


def integration_healthchecks(service):
    for channel, healthy in service.health_check().items():
        if not healthy:
            logger.error("integration_unhealthy", integration=channel)
        else:
            logger.info("integration_healthy", integration=channel)


def run_continuously(interval=1):
    """Continuously run, while executing pending jobs at each
    elapsed time interval.
    @return cease_continuous_run: threading. Event which can
    be set to cease continuous run. Please note that it is
    *intended behavior that run_continuously() does not run
    missed jobs*. For example, if you've registered a job that
    should run every minute and you set a continuous run
    interval of one hour then your job won't be run 60 times
    at each interval but only once.
    """
    cease_continuous_run = threading.Event()

    class ScheduleThread(threading.Thread):
        @classmethod
        def run(cls):
            while not cease_continuous_run.is_set():
                schedule.run_pending()
                time.sleep(interval)

    continuous_thread = ScheduleThread()
    continuous_thread.start()
    return cease_continuous_run
