"""Utility modules for multitrans.

This package provides utility functions for logging, file path handling, string and template
manipulation, and the event queue shared by provider tasks and the result aggregator.
"""

from utils.excludable_queue import ExcludableQueue
from utils.file_utils import FileUtils
from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

__all__: list[str] = ["ExcludableQueue", "FileUtils", "LoggerUtils", "StringUtils"]
