import datetime
from collections import namedtuple

from policyd.logger import logger
from policyd import QUEUE_STATUS_PENDING, utils
import settings

# Owner of a sending domain and its effective limits.
Tenant = namedtuple('Tenant', ['id', 'hourly_limit', 'daily_limit'])


def _limit_or_default(value, default):
    try:
        value = int(value)
    except (TypeError, ValueError):
        return default

    if value <= 0:
        return default

    return value


def get_tenant(engine, sender):
    """Get owner of the sender domain and its mail limits.

    Returns an instance of `Tenant`, or None if sender is not a valid email
    address or the domain is not hosted.

    @engine -- SQL engine of panel database (read-only is enough)
    @sender -- sender email address
    """
    _parts = utils.split_email(sender)
    if not _parts:
        return None

    domain = _parts[1]

    sql = """SELECT u.id, p.max_emails_per_hour, p.max_emails_per_day
               FROM users u
               JOIN domains d ON u.id = d.user_id
          LEFT JOIN user_packages up ON u.id = up.user_id
          LEFT JOIN packages p ON up.package_id = p.id
              WHERE d.name = :domain
              LIMIT 1"""

    logger.debug("[SQL] Query owner of domain {}".format(domain))

    try:
        qr = utils.execute_sql(engine, sql, {'domain': domain})
    except Exception as e:
        logger.error("<!> Error while querying owner of domain {}: {}".format(domain, repr(e)))
        return None

    logger.debug("[SQL] Query result: {}".format(repr(qr)))

    if not qr:
        logger.debug("No owner found for domain: {}".format(domain))
        return None

    (_id, _hourly, _daily) = qr[0]

    return Tenant(id=int(_id),
                  hourly_limit=_limit_or_default(_hourly, settings.DEFAULT_MAX_EMAILS_PER_HOUR),
                  daily_limit=_limit_or_default(_daily, settings.DEFAULT_MAX_EMAILS_PER_DAY))


def count_sent_since(engine, tenant_id, since):
    """Return number of mails sent by given tenant since `since` (inclusive).

    Returns 0 if the query failed.

    @since -- naive datetime in local time of the server
    """
    sql = """SELECT COUNT(*)
               FROM email_send_log
              WHERE user_id = :user_id AND sent_at >= :since"""

    _since = utils.sql_timestamp(since)

    try:
        qr = utils.execute_sql(engine, sql, {'user_id': tenant_id, 'since': _since})
        count = int(qr[0][0])
    except Exception as e:
        # TODO decide whether a failed count should defer instead of
        # allowing mails which might be over quota.
        logger.error("<!> Error while counting sent mails (user_id={}, since={}): {}".format(tenant_id, _since, repr(e)))
        return 0

    logger.debug("[SQL] Sent mails (user_id={}, since={}): {}".format(tenant_id, _since, count))
    return count


def log_sent_email(engine, tenant_id, sender, recipient, subject, now=None):
    """Store accepted mail in `email_send_log`. Errors are logged, not raised.

    Returns True if stored, False otherwise.
    """
    if not now:
        now = datetime.datetime.now()

    sql = """INSERT INTO email_send_log (user_id, sender, recipient, subject, sent_at)
                  VALUES (:user_id, :sender, :recipient, :subject, :sent_at)"""

    params = {
        'user_id': tenant_id,
        'sender': sender,
        'recipient': recipient,
        'subject': subject,
        'sent_at': utils.sql_timestamp(now),
    }

    try:
        utils.execute_sql(engine, sql, params)
    except Exception as e:
        logger.error("<!> Error while logging sent mail (user_id={}, {} -> {}): {}".format(tenant_id, sender, recipient, repr(e)))
        return False

    return True


def queue_email(engine, tenant_id, sender, recipient, subject, now=None):
    """Store deferred mail in `mail_queue`. Errors are logged, not raised.

    The mail is scheduled `settings.DEFER_DELAY_SECONDS` later, the queue
    processor takes care of it.

    Returns True if stored, False otherwise.
    """
    if not now:
        now = datetime.datetime.now()

    scheduled_at = utils.sql_timestamp(now + datetime.timedelta(seconds=settings.DEFER_DELAY_SECONDS))

    sql = """INSERT INTO mail_queue (user_id, sender, recipient, subject, scheduled_at, status)
                  VALUES (:user_id, :sender, :recipient, :subject, :scheduled_at, :status)"""

    params = {
        'user_id': tenant_id,
        'sender': sender,
        'recipient': recipient,
        'subject': subject,
        'scheduled_at': scheduled_at,
        'status': QUEUE_STATUS_PENDING,
    }

    try:
        utils.execute_sql(engine, sql, params)
    except Exception as e:
        logger.error("<!> Error while queuing mail (user_id={}, {} -> {}): {}".format(tenant_id, sender, recipient, repr(e)))
        return False

    logger.info("Queued mail: user_id={}, {} -> {}, scheduled={}".format(tenant_id, sender, recipient, scheduled_at))
    return True
