import sys
import logging
from logging.handlers import SysLogHandler, WatchedFileHandler
import settings

# Set application name.
logger = logging.getLogger('policyd')

# Set log level.
_log_level = getattr(logging, str(settings.log_level).upper())
logger.setLevel(_log_level)

# Never log to stdout or stderr unless running in foreground. Postfix
# spawn(8) connects both to the client, the reply would be broken.
#
# Errors raised by handlers (e.g. syslog socket is gone) are not printed
# to stderr either.
logging.raiseExceptions = False

_handler = None
_log_file_error = None

if '--foreground' in sys.argv:
    _formatter = logging.Formatter('%(asctime)s %(message)s')
    _handler = logging.StreamHandler(sys.stderr)
else:
    if settings.log_file:
        _formatter = logging.Formatter('%(asctime)s %(message)s')

        try:
            _handler = WatchedFileHandler(settings.log_file)
        except OSError as e:
            _log_file_error = e

    if _handler is None:
        _formatter = logging.Formatter('%(name)s %(message)s')

        if settings.SYSLOG_SERVER.startswith('/'):
            # Log to a local socket
            _server = settings.SYSLOG_SERVER
        else:
            # Log to a network address
            _server = (settings.SYSLOG_SERVER, settings.SYSLOG_PORT)

        try:
            _handler = SysLogHandler(address=_server, facility=settings.SYSLOG_FACILITY)
        except OSError:
            _handler = logging.NullHandler()

_handler.setFormatter(_formatter)
logger.addHandler(_handler)

if _log_file_error:
    logger.warning("Cannot open log file {}: {}, log to syslog instead.".format(settings.log_file, repr(_log_file_error)))
