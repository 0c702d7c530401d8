__version__ = "1.0.0"


SMTP_ACTIONS = {
    'default': 'DUNNO',
    # Hourly quota exceeded: (sent in last hour / hourly limit).
    'defer_hourly': 'DEFER_IF_PERMIT Saatlik mail limiti aşıldı ({}/{}). Mail kuyruğa alındı.',
    # Daily quota exceeded: (sent today / daily limit).
    'defer_daily': 'DEFER_IF_PERMIT Günlük mail limiti aşıldı ({}/{}). Mail kuyruğa alındı.',
}

# Rate limit verdicts.
#
#   - ABSTAIN: no tenant is responsible for the sender, nothing recorded.
#   - ALLOW: accepted and recorded in `email_send_log`.
#   - DEFER_HOURLY, DEFER_DAILY: deferred and recorded in `mail_queue`.
VERDICT_ABSTAIN = 'ABSTAIN'
VERDICT_ALLOW = 'ALLOW'
VERDICT_DEFER_HOURLY = 'DEFER_HOURLY'
VERDICT_DEFER_DAILY = 'DEFER_DAILY'

# Status of new `mail_queue` records. Records are delivered (or expired) by
# the queue processor, not by this daemon.
QUEUE_STATUS_PENDING = 'pending'
