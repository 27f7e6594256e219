from pricing.utils import common, tasks, time

__all__ = ["common", "tasks", "time"]
