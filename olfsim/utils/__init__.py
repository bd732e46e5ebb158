from .run_logger import RunLogger
