"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant is referenced by the corresponding
:class:`~paywalls.exceptions.PaywallsError` subclass. Shell wrappers and CI
scripts can rely on the exit code alone to tell a failed command from a
registration the operator cancelled.

Example::

    $ paywalls register
    ^C
    $ echo $?
    130   # EXIT_CANCELLED -- the operator interrupted registration
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""The command failed (missing credentials, HTTP error, expired code, etc.)."""

EXIT_CANCELLED = 130
"""The operator interrupted the command with Ctrl-C (128 + SIGINT)."""
