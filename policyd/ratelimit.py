# Purpose: Limit number of mails sent by each customer (the owner of sender
#          domain) per hour and per day. Mails over the limit are deferred
#          and stored in SQL table `mail_queue`, the queue processor sends
#          them later.

# Usage
# -------------
#
# *) Enable policy daemon in Postfix parameter `smtpd_recipient_restrictions`:
#
#    smtpd_recipient_restrictions =
#           permit_mynetworks,
#           permit_sasl_authenticated,
#           check_policy_service unix:private/policy,
#           reject_unauth_destination
#
# *) Or let Postfix spawn the daemon for each request (/etc/postfix/master.cf):
#
#    policy unix  -       n       n       -       0       spawn
#      user=nobody argv=/opt/serverpanel/bin/panel-policyd

# Technical details
# -------------
#
# Postfix sends one policy request for each recipient in RCPT state, so each
# recipient is counted as one mail.
#
# Limits are defined per package (SQL columns `packages.max_emails_per_hour`
# and `packages.max_emails_per_day`), customer without package (or package
# without limit) gets `DEFAULT_MAX_EMAILS_PER_HOUR` and
# `DEFAULT_MAX_EMAILS_PER_DAY`.
#
#   *) hourly limit: mails sent in last 60 minutes (sliding window).
#   *) daily limit: mails sent since 00:00 of today (`DAILY_LIMIT_TIMEZONE`).
#
# Hourly limit is checked first, if both are exceeded the hourly one is
# reported.
#
# Counters are queried before the accepted mail is logged, and the two steps
# are not one transaction. Concurrent requests from the same customer may
# both be accepted with the last free slot.

import datetime
from collections import namedtuple

from policyd.logger import logger
from policyd import SMTP_ACTIONS
from policyd import VERDICT_ABSTAIN, VERDICT_ALLOW
from policyd import VERDICT_DEFER_HOURLY, VERDICT_DEFER_DAILY
from policyd import sql as sql_lib
from policyd import utils

# @verdict: one of VERDICT_*
# @action: smtp action returned to Postfix
# @tenant: instance of `policyd.sql.Tenant`, or None
# @count, @limit: sent mails and limit of the exceeded (or last checked) window
Decision = namedtuple('Decision', ['verdict', 'action', 'tenant', 'count', 'limit'])


def _abstain():
    return Decision(verdict=VERDICT_ABSTAIN,
                    action=SMTP_ACTIONS['default'],
                    tenant=None,
                    count=0,
                    limit=0)


def apply_rate_limit(conns, sender, recipient, subject='', now=None):
    """Check hourly and daily limits of sender domain owner, return `Decision`.

    Exactly one of `email_send_log` (allowed) and `mail_queue` (deferred) is
    updated, nothing is updated if sender doesn't belong to any customer.

    @conns -- dict of SQL engines, returned by `utils.get_required_db_conns()`
    @now -- naive datetime in local time of the server, defaults to now.
    """
    engine_ro = conns['engine_panel_ro']
    engine_rw = conns['engine_panel_rw']

    if not now:
        now = datetime.datetime.now()

    if subject is None:
        subject = ''

    _parts = utils.split_email(sender)
    if not _parts:
        logger.debug("Bypassed. Not a valid sender address: {}".format(repr(sender)))
        return _abstain()

    # Domain names are stored in lower cases.
    (_username, _domain) = _parts
    tenant = sql_lib.get_tenant(engine_ro, _username + '@' + _domain.lower())
    if not tenant:
        logger.debug("Bypassed. Sender domain is not hosted: {}".format(_domain))
        return _abstain()

    sent_last_hour = sql_lib.count_sent_since(engine_ro, tenant.id, utils.hour_window_start(now))
    if sent_last_hour >= tenant.hourly_limit:
        logger.info("Hourly limit exceeded: user_id={}, sender={}, "
                    "sent={}, limit={}".format(tenant.id, sender, sent_last_hour, tenant.hourly_limit))

        sql_lib.queue_email(engine_rw,
                            tenant_id=tenant.id,
                            sender=sender,
                            recipient=recipient,
                            subject=subject,
                            now=now)

        return Decision(verdict=VERDICT_DEFER_HOURLY,
                        action=SMTP_ACTIONS['defer_hourly'].format(sent_last_hour, tenant.hourly_limit),
                        tenant=tenant,
                        count=sent_last_hour,
                        limit=tenant.hourly_limit)

    sent_today = sql_lib.count_sent_since(engine_ro, tenant.id, utils.day_window_start(now))
    if sent_today >= tenant.daily_limit:
        logger.info("Daily limit exceeded: user_id={}, sender={}, "
                    "sent={}, limit={}".format(tenant.id, sender, sent_today, tenant.daily_limit))

        sql_lib.queue_email(engine_rw,
                            tenant_id=tenant.id,
                            sender=sender,
                            recipient=recipient,
                            subject=subject,
                            now=now)

        return Decision(verdict=VERDICT_DEFER_DAILY,
                        action=SMTP_ACTIONS['defer_daily'].format(sent_today, tenant.daily_limit),
                        tenant=tenant,
                        count=sent_today,
                        limit=tenant.daily_limit)

    sql_lib.log_sent_email(engine_rw,
                           tenant_id=tenant.id,
                           sender=sender,
                           recipient=recipient,
                           subject=subject,
                           now=now)

    logger.info("Allowed: user_id={}, hourly={}/{}, daily={}/{}".format(
        tenant.id,
        sent_last_hour + 1, tenant.hourly_limit,
        sent_today + 1, tenant.daily_limit))

    return Decision(verdict=VERDICT_ALLOW,
                    action=SMTP_ACTIONS['default'],
                    tenant=tenant,
                    count=sent_today,
                    limit=tenant.daily_limit)
