import sys
import traceback
import datetime
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from sqlalchemy import create_engine, event, text
from sqlalchemy.pool import NullPool, QueuePool

from policyd.logger import logger
import settings


# Format of datetime values stored in SQL columns `sent_at`, `scheduled_at`.
SQL_TIMESTAMP_FORMAT = '%Y-%m-%d %H:%M:%S'


def get_traceback():
    exc_type, exc_value, exc_traceback = sys.exc_info()
    err_msg = repr(traceback.format_exception(exc_type, exc_value, exc_traceback))
    return err_msg


def split_email(s) -> Optional[Tuple[str, str]]:
    """Split email address to (username, domain).

    Returns None if address doesn't contain exactly one '@' with non-empty
    username and domain.

    >>> split_email('user@example.com')
    ('user', 'example.com')
    >>> split_email('not-an-email') is None
    True
    >>> split_email('a@b@example.com') is None
    True
    """
    if not s:
        return None

    parts = s.split('@')
    if len(parts) != 2 or not all(parts):
        return None

    return (parts[0], parts[1])


def sql_timestamp(dt: datetime.datetime) -> str:
    return dt.strftime(SQL_TIMESTAMP_FORMAT)


def hour_window_start(now: datetime.datetime) -> datetime.datetime:
    """Start of the sliding one-hour window."""
    return now - datetime.timedelta(hours=1)


def day_window_start(now: datetime.datetime, tz_name=None) -> datetime.datetime:
    """Start of current calendar day, in local time of the server.

    @now -- naive datetime in local time of the server.
    @tz_name -- timezone used to find the start of day. Defaults to
                `settings.DAILY_LIMIT_TIMEZONE`, or local timezone of the
                server if it's empty.
    """
    if tz_name is None:
        tz_name = settings.DAILY_LIMIT_TIMEZONE

    if not tz_name:
        return now.replace(hour=0, minute=0, second=0, microsecond=0)

    # Naive `now` is interpreted as local time by `astimezone()`.
    _now = now.astimezone(ZoneInfo(tz_name))
    _midnight = _now.replace(hour=0, minute=0, second=0, microsecond=0)

    # Convert back to naive local time, it's the format stored in SQL.
    return _midnight.astimezone().replace(tzinfo=None)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute('PRAGMA foreign_keys=ON')
    cursor.close()


def create_db_engine(db_path=None, read_only=False):
    """Return SQLAlchemy engine of the panel database (SQLite).

    @db_path -- path to SQLite database file. Defaults to
                `settings.panel_db_path`.
    @read_only -- open database in read-only mode. Read-only connections are
                  kept in pool, read-write connections are recycled after
                  `settings.SQL_CONNECTION_POOL_RECYCLE` seconds.
    """
    if not db_path:
        db_path = settings.panel_db_path

    connect_args = {
        'timeout': settings.SQL_BUSY_TIMEOUT,
        # Connections are shared by threads of the pool.
        'check_same_thread': False,
    }

    if read_only:
        uri = 'sqlite:///file:%s?mode=ro&uri=true' % db_path
        engine = create_engine(uri,
                               connect_args=connect_args,
                               poolclass=QueuePool,
                               pool_size=settings.SQL_CONNECTION_POOL_SIZE,
                               max_overflow=settings.SQL_CONNECTION_MAX_OVERFLOW)
    else:
        uri = 'sqlite:///%s' % db_path

        if settings.SQL_WRITE_POOL_SIZE > 0:
            engine = create_engine(uri,
                                   connect_args=connect_args,
                                   poolclass=QueuePool,
                                   pool_size=settings.SQL_WRITE_POOL_SIZE,
                                   pool_recycle=settings.SQL_CONNECTION_POOL_RECYCLE,
                                   max_overflow=settings.SQL_CONNECTION_MAX_OVERFLOW)
        else:
            # One connection per insert, closed right after.
            engine = create_engine(uri,
                                   connect_args=connect_args,
                                   poolclass=NullPool)

    event.listen(engine, 'connect', _enable_sqlite_foreign_keys)
    return engine


def execute_sql(engine, sql, params=None):
    """Execute SQL query with given db engine.

    Returns fetched rows for queries which return rows (SELECT), number of
    affected rows otherwise.
    """
    with engine.connect() as conn:
        with conn.begin():
            qr = conn.execute(text(sql), params or {})

            if qr.returns_rows:
                return qr.fetchall()

            return qr.rowcount


def get_required_db_conns(db_path=None):
    """Create SQL engines and verify the database is readable.

    Returns a dict of engines, or None if database is not accessible.
    """
    if not db_path:
        db_path = settings.panel_db_path

    try:
        engine_ro = create_db_engine(db_path, read_only=True)
        engine_rw = create_db_engine(db_path)

        # Engines connect lazily, make sure database really exists.
        execute_sql(engine_ro, 'SELECT 1')
    except Exception as e:
        logger.error("Cannot open database {}: {}".format(db_path, repr(e)))
        return None

    return {
        'engine_panel_ro': engine_ro,
        'engine_panel_rw': engine_rw,
    }


def log_policy_request(smtp_session_data, action, start_time=None, end_time=None):
    # Log sasl username, sender, recipient
    #   `sender -> recipient`: sender not authenticated
    #   `sender => recipient`: sasl username is same as sender address (From:)
    #   `sasl_username => sender -> recipient`: user send as different sender address
    # @start_time, @end_time are instance of 'time.time()'.
    sasl_username = smtp_session_data.get('sasl_username', '')
    sender = smtp_session_data.get('sender', '')
    recipient = smtp_session_data.get('recipient', '')

    if sasl_username:
        if sasl_username == sender:
            _log_sender_to_rcpt = f"{sasl_username} => {recipient}"
        else:
            _log_sender_to_rcpt = f"{sasl_username} => {sender} -> {recipient}"
    else:
        _log_sender_to_rcpt = f"{sender} -> {recipient}"

    _time = ''
    if start_time and end_time:
        _time = "{:.4f}s".format(end_time - start_time)

    logger.info("[{}] {}, {} [process_time={}]".format(
        smtp_session_data.get('client_address', ''),
        _log_sender_to_rcpt,
        action,
        _time))

    return None
