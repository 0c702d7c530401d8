import datetime

from policyd.utils import execute_sql, sql_timestamp
from tests import tdata

# Fixed point in time used by rate limit test cases, in local time.
NOW = datetime.datetime(2024, 5, 15, 12, 0, 0)


def create_schema(engine):
    for sql in tdata.sql_schema:
        execute_sql(engine, sql)


def add_user(engine, user_id=tdata.user_id, username=tdata.username):
    execute_sql(engine,
                'INSERT INTO users (id, username) VALUES (:id, :username)',
                {'id': user_id, 'username': username})


def add_domain(engine, domain=tdata.domain, user_id=tdata.user_id):
    execute_sql(engine,
                'INSERT INTO domains (user_id, name) VALUES (:user_id, :name)',
                {'user_id': user_id, 'name': domain})


def add_package(engine,
                hourly=None,
                daily=None,
                user_id=tdata.user_id,
                package_id=tdata.package_id,
                name=tdata.package_name):
    """Create a package with given limits and assign it to the user."""
    execute_sql(engine,
                """INSERT INTO packages (id, name, max_emails_per_hour, max_emails_per_day)
                        VALUES (:id, :name, :hourly, :daily)""",
                {'id': package_id, 'name': name, 'hourly': hourly, 'daily': daily})

    execute_sql(engine,
                'INSERT INTO user_packages (user_id, package_id) VALUES (:user_id, :package_id)',
                {'user_id': user_id, 'package_id': package_id})


def add_tenant(engine, domain=tdata.domain, user_id=tdata.user_id):
    """Create a user without package (default limits) which owns `domain`."""
    add_user(engine, user_id=user_id, username='user{}'.format(user_id))
    add_domain(engine, domain=domain, user_id=user_id)


def add_sent_logs(engine, sent_at, num=1, user_id=tdata.user_id):
    """Insert `num` records of sent mails at given time."""
    if not num:
        return

    records = [
        {
            'user_id': user_id,
            'sender': tdata.sender,
            'recipient': 'rcpt{}@x.test'.format(i),
            'sent_at': sql_timestamp(sent_at),
        }
        for i in range(num)
    ]

    execute_sql(engine,
                """INSERT INTO email_send_log (user_id, sender, recipient, subject, sent_at)
                        VALUES (:user_id, :sender, :recipient, '', :sent_at)""",
                records)


def count_sent_logs(engine, user_id=None):
    if user_id is None:
        qr = execute_sql(engine, 'SELECT COUNT(*) FROM email_send_log')
    else:
        qr = execute_sql(engine,
                         'SELECT COUNT(*) FROM email_send_log WHERE user_id=:user_id',
                         {'user_id': user_id})

    return qr[0][0]


def get_sent_logs(engine):
    qr = execute_sql(engine,
                     """SELECT user_id, sender, recipient, subject, sent_at
                          FROM email_send_log
                      ORDER BY id""")
    return [dict(r._mapping) for r in qr]


def count_queued_mails(engine):
    qr = execute_sql(engine, 'SELECT COUNT(*) FROM mail_queue')
    return qr[0][0]


def get_queued_mails(engine):
    qr = execute_sql(engine,
                     """SELECT user_id, sender, recipient, subject, scheduled_at, status
                          FROM mail_queue
                      ORDER BY id""")
    return [dict(r._mapping) for r in qr]


def set_smtp_session(**kw):
    """Generate sample smtp session data (bytes), terminated by empty line.

    Key/value pairs which are not used will be silently ignored.
    """
    d = {
        'request': 'smtpd_access_policy',
        'protocol_state': 'RCPT',
        'protocol_name': 'SMTP',
        'recipient_count': '0',
        'client_address': '192.168.1.1',
        'reverse_client_name': 'another.domain.tld',
        'instance': '123.456.7',
        'size': '123',
        # 'helo_name': 'some.domain.tld',
        # 'queue_id': '8045F2AB23',
        # 'sender': 'alice@example.com',
        # 'recipient': 'bob@x.test',
        # 'sasl_username': 'alice@example.com',
    }

    d.update(**kw)

    items = ['{}={}'.format(k, v) for k, v in list(d.items())]
    return ('\n'.join(items) + '\n\n').encode('utf-8')
