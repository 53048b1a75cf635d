"""Task lifecycle: models, typed failures, and the SQLite-backed store.

Tasks move strictly forward through ``pending -> active -> done``. Claiming
and completing are single conditional UPDATE statements keyed on the
expected current status, so concurrent callers racing on the same task see
exactly one winner.
"""
