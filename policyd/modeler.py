import time

from policyd.logger import logger
from policyd import SMTP_ACTIONS, ratelimit, utils


class Modeler:
    def __init__(self, conns):
        # :param conns: a dict which contains sql engines.
        self.conns = conns

    def handle_data(self, smtp_session_data):
        """Apply rate limit on one policy request, return smtp action.

        Never raises, falls back to default action (DUNNO) on any error.
        """
        _start_time = time.time()

        sender = smtp_session_data.get('sender', '')
        recipient = smtp_session_data.get('recipient', '')
        subject = smtp_session_data.get('subject', '')

        try:
            decision = ratelimit.apply_rate_limit(conns=self.conns,
                                                  sender=sender,
                                                  recipient=recipient,
                                                  subject=subject)
            action = decision.action
        except Exception:
            action = SMTP_ACTIONS['default']
            logger.error("<!> Unexpected error: {}. Fallback to default action: {}".format(utils.get_traceback(), action))

        utils.log_policy_request(smtp_session_data=smtp_session_data,
                                 action=action,
                                 start_time=_start_time,
                                 end_time=time.time())

        return action
