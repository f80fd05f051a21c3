"""Built-in CLI sub-commands for paywalls.

Each module exports a plain callback registered directly on the root app:

* :mod:`~paywalls.commands.register` -- device-code registration.
* :mod:`~paywalls.commands.balance` -- wallet balance.
* :mod:`~paywalls.commands.receipts` -- transaction receipts.
* :mod:`~paywalls.commands.topup` -- add funds (``fund`` is an alias).
* :mod:`~paywalls.commands.doctor` -- environment diagnostics.

Shared option factories and error rendering live in
:mod:`~paywalls.commands.common`.
"""
