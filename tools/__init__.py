"""Library used by other scripts under tools/ directory."""

import os
import sys
import logging

from sqlalchemy import bindparam, text

os.environ['LC_ALL'] = 'C'

import settings
from policyd import utils

# logging
logger = logging.getLogger('policyd-cmd')
_ch = logging.StreamHandler(sys.stdout)
_formatter = logging.Formatter('%(message)s')
_ch.setFormatter(_formatter)
logger.addHandler(_ch)

_log_level = getattr(logging, str(settings.log_level).upper())
logger.setLevel(_log_level)


def get_db_engine(db_path=None):
    """Return read-write SQL engine of panel database."""
    return utils.create_db_engine(db_path=db_path)


def sql_count_id(engine, table, column='id', where=None, params=None):
    sql = 'SELECT COUNT({}) AS total FROM {}'.format(column, table)
    if where:
        sql += ' WHERE ' + where

    qr = utils.execute_sql(engine, sql, params)
    if qr:
        return qr[0][0] or 0

    return 0


# Removing limited records each time from single table.
def cleanup_sql_table(engine,
                      sql_table,
                      unique_index_column='id',
                      sql_where=None,
                      params=None,
                      print_left_rows=False):
    """Remove records matching `sql_where`, `CLEANUP_QUERY_SIZE_LIMIT` rows per query.

    Returns number of removed records.
    """
    num_removed_rows = 0

    sql_select = 'SELECT {} FROM {}'.format(unique_index_column, sql_table)
    if sql_where:
        sql_select += ' WHERE ' + sql_where
    sql_select += ' LIMIT {}'.format(int(settings.CLEANUP_QUERY_SIZE_LIMIT))

    sql_delete = 'DELETE FROM {} WHERE {} IN :values'.format(sql_table, unique_index_column)
    _stmt_delete = text(sql_delete).bindparams(bindparam('values', expanding=True))

    while True:
        _qr = utils.execute_sql(engine, sql_select, params)
        remove_values = [i[0] for i in _qr]

        if not remove_values:
            break

        with engine.connect() as conn:
            with conn.begin():
                conn.execute(_stmt_delete, {'values': remove_values})

        num_removed_rows += len(remove_values)
        logger.info("* {:20}: {} records removed.".format(sql_table, num_removed_rows))

    if print_left_rows:
        total = sql_count_id(engine, sql_table, column=unique_index_column)
        logger.info("* {:20}: {} left.".format(sql_table, total))

    return num_removed_rows
