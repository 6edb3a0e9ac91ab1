# Common utilities
from bucketd.common.config import Config as Config
from bucketd.common.env import Environment as Environment
from bucketd.common.logging_utils import setup_logger as setup_logger

__all__ = ["Config", "Environment", "setup_logger"]
