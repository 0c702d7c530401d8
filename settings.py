from policyd.default_settings import *

# Site settings. Settings defined here override the ones defined in
# `policyd/default_settings.py`.

panel_db_path = '/var/lib/serverpanel/panel.db'
socket_path = '/var/spool/postfix/private/policy'

log_file = '/var/log/serverpanel/policy-daemon.log'
log_level = 'info'
