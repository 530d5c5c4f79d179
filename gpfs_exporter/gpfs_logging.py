import datetime
import enum
import logging
import sys

# Define the custom log levels
CRITICAL = logging.CRITICAL
FATAL = CRITICAL
ERROR = logging.ERROR
WARNING = logging.WARNING   # 30
WARN = WARNING
STATUS = 25
INFO = logging.INFO         # 20
VERBOSE = 19
VERBOSER = 18
DEBUG = logging.DEBUG       # 10
RIDICULOUS = 7
NOTSET = logging.NOTSET

DEFAULT_STREAM_LOG_LEVEL = logging.INFO
ROOT_LOGGER_NAME = "gpfs_exporter"

custom_levels = {
    'STATUS': STATUS,
    'VERBOSE': VERBOSE,
    'VERBOSER': VERBOSER,
    'RIDICULOUS': RIDICULOUS,
}


# Custom colors for various logging levels
class COLORS(enum.Enum):
    red = "\033[0;31m"
    green = "\033[0;32m"
    yellow = "\033[0;33m"
    blue = "\033[0;34m"
    cyan = "\033[0;36m"
    bred = "\033[1;31m"
    bblue = "\033[1;34m"
    bipurple = "\033[1;95m"
    normal = "\033[0m"


level_to_color_map = {
    ERROR: COLORS.bred,
    CRITICAL: COLORS.bred,
    WARNING: COLORS.yellow,
    STATUS: COLORS.bblue,
    INFO: COLORS.normal,
    VERBOSE: COLORS.normal,
    VERBOSER: COLORS.normal,
    DEBUG: COLORS.normal,
    RIDICULOUS: COLORS.bipurple,
}


def get_level_color(level):
    return level_to_color_map.get(level, COLORS.normal).value


def log_level_factory(level_name):
    level_num = custom_levels.get(level_name, logging.NOTSET)

    def log_func(self, message, *args, **kwargs):
        if self.isEnabledFor(level_num):
            self._log(level_num, message, args, **kwargs)
    return log_func


class GPFSLogger(logging.Logger):
    def _log(self, level, msg, args, exc_info=None, extra=None, stack_info=False, stacklevel=3):
        # super()._log() would report this file as the caller, so the record is built here with the
        # stacklevel that points at the collector line that logged.
        fn, lno, func, sinfo = self.findCaller(stack_info, stacklevel)
        if exc_info:
            if isinstance(exc_info, BaseException):
                exc_info = (type(exc_info), exc_info, exc_info.__traceback__)
            elif not isinstance(exc_info, tuple):
                exc_info = sys.exc_info()

        record = self.makeRecord(self.name, level, fn, lno, msg, args, exc_info, func, extra, sinfo)
        self.handle(record)


# Add the custom levels to the logger
for custom_name, custom_num in custom_levels.items():
    logging.addLevelName(custom_num, custom_name)
    setattr(GPFSLogger, custom_name.lower(), log_level_factory(custom_name))


class ColoredStandardFormatter(logging.Formatter):
    def __init__(self, use_color=True):
        super().__init__()
        self.use_color = use_color

    def _wrap(self, record, text):
        if not self.use_color:
            return text
        return f"{get_level_color(record.levelno)}{text}{COLORS.normal.value}"

    def format(self, record):
        formatted_time = f"{datetime.datetime.now().strftime('%Y-%m-%d %H:%M:%S')}"
        text = f"{formatted_time}|{record.levelname}|{record.name}: {record.getMessage()}"
        if record.exc_info:
            text = f"{text}\n{self.formatException(record.exc_info)}"
        return self._wrap(record, text)


class ColoredDebugFormatter(ColoredStandardFormatter):
    def format(self, record):
        formatted_time = f"{datetime.datetime.now().strftime('%Y-%m-%d %H:%M:%S')}"
        text = f"{formatted_time}|{record.levelname}|{record.name}:{record.module}:{record.lineno}: " \
               f"{record.getMessage()}"
        if record.exc_info:
            text = f"{text}\n{self.formatException(record.exc_info)}"
        return self._wrap(record, text)


def setup_logging(name=ROOT_LOGGER_NAME, stream_log_level=DEFAULT_STREAM_LOG_LEVEL):
    """Create the exporter's root logger with a stream handler on stderr.

    Collectors log through children of this logger (see ``get_logger``), so
    the handler and level configured here apply to every module.
    """
    if isinstance(stream_log_level, str):
        stream_log_level = logging.getLevelName(stream_log_level.upper())

    logging.setLoggerClass(GPFSLogger)
    _logger = logging.getLogger(name)
    logging.setLoggerClass(logging.Logger)
    _logger.setLevel(logging.DEBUG)
    _logger.propagate = False

    for handler in list(_logger.handlers):
        _logger.removeHandler(handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(ColoredStandardFormatter(use_color=sys.stderr.isatty()))
    stream_handler.setLevel(stream_log_level)
    _logger.addHandler(stream_handler)

    return _logger


def get_logger(name):
    """Return a ``GPFSLogger`` child of the exporter's root logger."""
    full_name = name if name.startswith(ROOT_LOGGER_NAME) else f"{ROOT_LOGGER_NAME}.{name}"
    logging.setLoggerClass(GPFSLogger)
    try:
        return logging.getLogger(full_name)
    finally:
        logging.setLoggerClass(logging.Logger)


def apply_logging_options(_logger, args):
    if args is None:
        return
    stream_handlers = [h for h in _logger.handlers if not hasattr(h, 'baseFilename')]

    # Set log level to VERBOSE unless the current log level is already lower
    if hasattr(args, "verbose") and args.verbose:
        for stream_handler in stream_handlers:
            if stream_handler.level > VERBOSE:
                stream_handler.setLevel(VERBOSE)

    if hasattr(args, "debug") and args.debug:
        for stream_handler in stream_handlers:
            stream_handler.setFormatter(ColoredDebugFormatter(use_color=sys.stderr.isatty()))
            if stream_handler.level > DEBUG:
                stream_handler.setLevel(DEBUG)

    if hasattr(args, "log_level") and args.log_level:
        for stream_handler in stream_handlers:
            stream_handler.setLevel(args.log_level.upper())
