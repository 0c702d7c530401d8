"""Postfix policy delegation protocol.

Postfix sends one request as lines of `name=value`, terminated by an empty
line, and expects one line `action=...` followed by an empty line.

Reference: http://www.postfix.org/SMTPD_POLICY_README.html
"""

from policyd.logger import logger

# Values are passed through as is, undecodable bytes are kept as surrogates.
ENCODING = 'utf-8'
ENCODING_ERRORS = 'surrogateescape'


class AttributeParser:
    """Collect policy request attributes, line by line."""
    def __init__(self):
        self.smtp_session_data = {}

    def reset(self):
        """Discard attributes of unfinished request."""
        self.smtp_session_data = {}

    def feed(self, line):
        """Process one line (bytes or str), with or without the line feed.

        Returns a dict of all attributes when the empty line which terminates
        the request is received, None otherwise.
        """
        if isinstance(line, (bytes, bytearray)):
            line = bytes(line).decode(ENCODING, ENCODING_ERRORS)

        if line.endswith('\n'):
            line = line[:-1]

        if not line:
            smtp_session_data = self.smtp_session_data
            self.reset()
            return smtp_session_data

        if '=' in line:
            (k, v) = line.split('=', 1)
            self.smtp_session_data[k] = v
        else:
            logger.debug("[policy] Drop invalid input: {}".format(line))

        return None


def format_response(action) -> bytes:
    return ('action=' + action + '\n\n').encode(ENCODING, ENCODING_ERRORS)
