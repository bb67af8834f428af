from . import artifacts, jobs

__all__ = ["artifacts", "jobs"]
