# config package — authoritative source for all client configuration.
#
# Sub-modules:
#   portal_config.py  — webhook endpoint, batch wire settings, method names
#   batch_params.py   — batch capacity, page size, timeouts, command ids
#
# The webhook URL itself is never stored here; it is read from the
# environment variable named by PORTAL_WEBHOOK_URL_ENV.
