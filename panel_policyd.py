import sys

# Import config file (settings.py) and modules
import settings
from policyd import __version__, utils, channel
from policyd.logger import logger

USAGE = """Usage: panel-policyd [--spawn | --listen] [--foreground]

    --spawn
        Handle one policy request from stdin, write the action to stdout and
        exit. This is how Postfix runs it with `spawn` in master.cf.

    --listen
        Listen on Unix socket `socket_path` (settings.py) and serve policy
        requests until killed.

    --foreground
        Log to stderr instead of `log_file`.

Without --spawn and --listen, runs in spawn mode if stdin is a pipe or
socket, otherwise listens on Unix socket.
"""


def main():
    if '--help' in sys.argv or '-h' in sys.argv:
        print(USAGE)
        sys.exit(0)

    # Establish SQL database connections.
    db_conns = utils.get_required_db_conns()
    if not db_conns:
        logger.error("Database is not accessible: {}, exit.".format(settings.panel_db_path))
        sys.exit(255)

    if '--spawn' in sys.argv:
        spawn = True
    elif '--listen' in sys.argv:
        spawn = False
    else:
        spawn = channel.is_spawned(sys.stdin)

    if spawn:
        channel.handle_stdin_request(conns=db_conns)
        return

    logger.info("Starting policy daemon (version: {}), "
                "listening on {}.".format(__version__, settings.socket_path))

    try:
        listener = channel.create_unix_listener(settings.socket_path)
    except Exception as e:
        logger.error("Cannot listen on {}: {}".format(settings.socket_path, repr(e)))
        sys.exit(255)

    server = channel.create_policy_server(listener, db_conns)

    # Starting loop.
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    except Exception as e:
        logger.error("Error in serve_forever: {}".format(repr(e)))
        sys.exit(255)


if __name__ == '__main__':
    main()
