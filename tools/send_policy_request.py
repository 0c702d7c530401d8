#!/usr/bin/env python3

# Purpose: Send a sample policy request to the running daemon and print the
#          reply. Useful to verify the daemon and the limits of a customer.
#
# Usage:
#
#   python3 send_policy_request.py <sender> [recipient] [socket_path]

import os
import sys
import socket

rootdir = os.path.abspath(os.path.dirname(__file__)) + '/../'
sys.path.insert(0, rootdir)

import settings

policy_data = """request=smtpd_access_policy
protocol_state=RCPT
protocol_name=SMTP
helo_name=some.domain.tld
queue_id=8045F2AB23
sender={sender}
recipient={recipient}
recipient_count=0
client_address=192.0.2.10
client_name=mail.domain.tld
reverse_client_name=mail.domain.tld
instance=123.456.7
sasl_method=
sasl_username=
sasl_sender=
size=123

"""


def send_request(sender, recipient, socket_path=None):
    """Send one policy request, return the reply as string."""
    if not socket_path:
        socket_path = settings.socket_path

    data = policy_data.format(sender=sender, recipient=recipient)

    s = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        s.connect(socket_path)
        s.sendall(data.encode())

        reply = b''
        while not reply.endswith(b'\n\n'):
            chunk = s.recv(1024)
            if not chunk:
                break
            reply += chunk
    finally:
        s.close()

    return reply.decode(errors='replace')


if __name__ == '__main__':
    if len(sys.argv) < 2:
        print("Usage: {} <sender> [recipient] [socket_path]".format(sys.argv[0]))
        sys.exit(1)

    _sender = sys.argv[1]
    _recipient = 'postmaster@example.com'
    _socket_path = None

    if len(sys.argv) > 2:
        _recipient = sys.argv[2]

    if len(sys.argv) > 3:
        _socket_path = sys.argv[3]

    print(send_request(_sender, _recipient, _socket_path).strip())
