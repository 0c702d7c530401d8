#!/usr/bin/env python3

# Purpose: Cleanup expired records of sent mails (SQL table `email_send_log`).
#
# Records older than `SEND_LOG_EXPIRE_DAYS` days are not used by hourly and
# daily limits anymore. Deferred mails in `mail_queue` are managed by the
# queue processor, they're never removed here.
#
# Run it daily with cron:
#
#   1 3 * * * python3 /opt/serverpanel/policyd/tools/cleanup_db.py >/dev/null

import os
import sys
import datetime

os.environ['LC_ALL'] = 'C'

rootdir = os.path.abspath(os.path.dirname(__file__)) + '/../'
sys.path.insert(0, rootdir)

import settings
from policyd import utils
from tools import logger, get_db_engine, cleanup_sql_table


def cleanup_send_log(engine, now=None, expire_days=None):
    """Remove records of mails sent before `expire_days` days ago.

    Returns number of removed records.
    """
    if not now:
        now = datetime.datetime.now()

    if expire_days is None:
        expire_days = settings.SEND_LOG_EXPIRE_DAYS

    expired_before = now - datetime.timedelta(days=expire_days)

    return cleanup_sql_table(engine=engine,
                             sql_table='email_send_log',
                             sql_where='sent_at < :expired_before',
                             params={'expired_before': utils.sql_timestamp(expired_before)},
                             print_left_rows=True)


if __name__ == '__main__':
    engine = get_db_engine()

    logger.info("* Remove sent mail records older than {} days.".format(settings.SEND_LOG_EXPIRE_DAYS))
    cleanup_send_log(engine)
