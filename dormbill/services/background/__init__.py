from dormbill.services.background.task_scheduler_service import SchedulerRun, TaskSchedulerService

__all__ = ["SchedulerRun", "TaskSchedulerService"]
