# Default settings. Do NOT modify this file, override the settings in
# `settings.py` instead.

# SQLite database of the control panel. The daemon reads domains, packages
# and sent mails from it, and writes `email_send_log` and `mail_queue`.
panel_db_path = '/var/lib/serverpanel/panel.db'

# Unix socket used in listener mode. Postfix connects to it with:
#
#   smtpd_recipient_restrictions =
#       ...
#       check_policy_service unix:private/policy
#       ...
socket_path = '/var/spool/postfix/private/policy'

# Max number of pending connections on the policy socket.
SOCKET_BACKLOG = 128

# Max length of one line of policy request, in bytes (line feed included).
# Connection is dropped if a longer line is received.
POLICY_MAX_LINE_LENGTH = 65536

# Log file. Messages are appended, rotate it with logrotate.
log_file = '/var/log/serverpanel/policy-daemon.log'

# Log level: info, debug.
log_level = 'info'

# Syslog server address, used if `log_file` can not be opened.
# Log to local socket by default, /dev/log on Linux/OpenBSD, /var/run/log on FreeBSD.
SYSLOG_SERVER = '/dev/log'
SYSLOG_PORT = 514

# Syslog facility
SYSLOG_FACILITY = 'mail'

# Limits used if the domain owner has no package, or the package doesn't
# define the limit.
DEFAULT_MAX_EMAILS_PER_HOUR = 100
DEFAULT_MAX_EMAILS_PER_DAY = 500

# Deferred emails are stored in SQL table `mail_queue` and scheduled to be
# sent in given seconds.
DEFER_DELAY_SECONDS = 3600

# Timezone used to find the start of current day for daily limit. e.g.
# 'Europe/Istanbul'. Leave it empty to use local timezone of the server.
DAILY_LIMIT_TIMEZONE = ''

# Number of threads used to run policy checks in listener mode. SQL queries
# are blocking calls, they run in this thread pool so that one slow query
# doesn't block other connections.
POLICY_WORKER_THREADS = 10

# SQLAlchemy: The size of the SQL connection pool used for read-only queries.
# Connections are opened on demand and kept open.
SQL_CONNECTION_POOL_SIZE = 5

# SQLAlchemy: The size of the SQL connection pool used to insert sent mails
# and queued mails. Set to 0 to open a new connection for each insert and
# close it immediately.
SQL_WRITE_POOL_SIZE = 2

# SQLAlchemy: SQL connection max overflow, applies to both pools.
SQL_CONNECTION_MAX_OVERFLOW = 5

# SQLAlchemy: Recycle read-write connections older than given seconds.
SQL_CONNECTION_POOL_RECYCLE = 60

# SQLite: seconds to wait for a locked database before giving up.
SQL_BUSY_TIMEOUT = 5

# ----------------
# Required by: tools/cleanup_db.py
#
# Remove records in `email_send_log` older than given days. Must be larger
# than 1, otherwise daily limit doesn't work.
SEND_LOG_EXPIRE_DAYS = 30

# Max number of SQL records to remove in one query.
CLEANUP_QUERY_SIZE_LIMIT = 1000
