import io
import os
import sys
import stat

import gevent
from gevent import socket
from gevent.server import StreamServer

from policyd.logger import logger
from policyd.modeler import Modeler
from policyd.protocol import AttributeParser, format_response
import settings


def is_spawned(stream=None):
    """Check whether we're spawned by Postfix to handle one request.

    Postfix connects stdin to a pipe or socket. Started by hand (tty) or by
    an init system (/dev/null), stdin is a character device.
    """
    if stream is None:
        stream = sys.stdin

    try:
        mode = os.fstat(stream.fileno()).st_mode
    except (OSError, ValueError, io.UnsupportedOperation):
        return False

    return not stat.S_ISCHR(mode)


def read_line(rfile):
    """Read one line (bytes) from file object, at most
    `settings.POLICY_MAX_LINE_LENGTH` bytes.

    Returns empty bytes at end of input, None if the line is too long.
    """
    limit = settings.POLICY_MAX_LINE_LENGTH
    line = rfile.readline(limit)

    if len(line) >= limit and not line.endswith(b'\n'):
        logger.warning("[policy] Line too long (> {} bytes), drop connection.".format(limit))
        return None

    return line


def handle_stdin_request(conns, stdin=None, stdout=None):
    """Read one policy request from stdin and write the action to stdout.

    Returns True if request was handled, False if input ended before the
    request was complete, or a line is too long (nothing is written in
    these cases).
    """
    if stdin is None:
        stdin = sys.stdin.buffer

    if stdout is None:
        stdout = sys.stdout.buffer

    parser = AttributeParser()

    while True:
        line = read_line(stdin)
        if line is None:
            return False

        if not line:
            break

        smtp_session_data = parser.feed(line)
        if smtp_session_data is None:
            continue

        action = Modeler(conns=conns).handle_data(smtp_session_data)
        stdout.write(format_response(action))
        stdout.flush()
        return True

    logger.debug("[policy] Input ended without a complete request, no reply.")
    return False


class PolicyHandler:
    """Process policy requests on one connection.

    The StreamServer runs each connection in its own greenlet, requests on
    the same connection are answered in order. Policy checks run in the
    thread pool since SQL queries block.
    """
    def __init__(self, conns, threadpool=None):
        self.conns = conns

        if threadpool is None:
            threadpool = gevent.get_hub().threadpool

        self.threadpool = threadpool

    def __call__(self, sock, address):
        parser = AttributeParser()
        modeler = Modeler(conns=self.conns)
        rfile = sock.makefile(mode='rb')

        try:
            while True:
                line = read_line(rfile)
                if line is None:
                    break

                if not line:
                    # Connection closed by Postfix.
                    break

                smtp_session_data = parser.feed(line)
                if smtp_session_data is None:
                    continue

                action = self.threadpool.apply(modeler.handle_data, (smtp_session_data,))
                sock.sendall(format_response(action))
        except OSError as e:
            logger.debug("[policy] Connection dropped: {}".format(repr(e)))
        finally:
            # Discard unfinished request.
            parser.reset()
            rfile.close()


def create_unix_listener(path=None, backlog=None):
    """Bind and listen on Unix socket, remove stale socket file first.

    Socket is world read-writable, Postfix connects as its own user.
    Raises OSError if failed.
    """
    if not path:
        path = settings.socket_path

    if not backlog:
        backlog = settings.SOCKET_BACKLOG

    try:
        os.remove(path)
    except FileNotFoundError:
        pass

    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        sock.bind(path)
        os.chmod(path, 0o666)
        sock.listen(backlog)
    except OSError:
        sock.close()
        raise

    return sock


def create_policy_server(listener, conns):
    """Return a (not started) StreamServer which serves policy requests."""
    threadpool = gevent.get_hub().threadpool
    threadpool.maxsize = settings.POLICY_WORKER_THREADS

    return StreamServer(listener, handle=PolicyHandler(conns=conns, threadpool=threadpool))
